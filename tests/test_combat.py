"""
Tests for combat.py

Covers damage-expression parsing, expected damage, the attack-odds curve and
dice resolution with a seeded generator.

Run with: python -m pytest tests/test_combat.py -v
"""

import pytest

from faction_ai.combat import (
    calculate_attack_odds,
    expected_damage,
    parse_damage,
    resolve_attack,
    roll_damage,
)
from faction_ai.randomness import make_rng


class TestDamageExpressions:
    """Tests for parse_damage and expected_damage"""

    @pytest.mark.parametrize("text,parsed", [
        ("1d6", (1, 6, 0)),
        ("2d6+2", (2, 6, 2)),
        ("1d4-1", (1, 4, -1)),
        ("3", (0, 0, 3)),
    ])
    def test_parse(self, text, parsed):
        assert parse_damage(text) == parsed

    @pytest.mark.parametrize("text", ["special", "None", "", None, "lots"])
    def test_unparseable_is_none(self, text):
        assert parse_damage(text) is None
        assert expected_damage(text) == 0.0

    def test_expected_damage(self):
        assert expected_damage("1d6") == pytest.approx(3.5)
        assert expected_damage("2d10+4") == pytest.approx(15.0)
        assert expected_damage("1d3+1") == pytest.approx(3.0)

    def test_roll_within_bounds(self):
        rng = make_rng(5)
        rolls = [roll_damage("2d6+1", rng) for _ in range(200)]
        assert min(rolls) >= 3
        assert max(rolls) <= 13


class TestAttackOdds:
    """Tests for calculate_attack_odds"""

    def test_even_contest(self):
        assert calculate_attack_odds(3, 3) == pytest.approx(0.5)

    def test_monotonic(self):
        odds = [calculate_attack_odds(a, 4) for a in range(0, 9)]
        assert odds == sorted(odds)
        assert all(0.0 <= o <= 1.0 for o in odds)

    def test_symmetric(self):
        assert calculate_attack_odds(6, 2) == pytest.approx(1 - calculate_attack_odds(2, 6))


class TestResolveAttack:
    """Tests for dice resolution"""

    def test_seeded_resolution_repeats(self, make_faction, catalog):
        red = make_faction("red", "sol", force=4)
        blue = make_faction("blue", "tau", force=2)
        fleet = catalog.get("force_4_strike_fleet")
        guards = catalog.get("force_1_security_personnel")
        first = resolve_attack(red, fleet, blue, guards, make_rng(9))
        second = resolve_attack(red, fleet, blue, guards, make_rng(9))
        assert first == second

    def test_winner_deals_damage(self, make_faction, catalog):
        red = make_faction("red", "sol", force=4)
        blue = make_faction("blue", "tau", force=2)
        fleet = catalog.get("force_4_strike_fleet")
        guards = catalog.get("force_1_security_personnel")
        rng = make_rng(11)
        for _ in range(50):
            result = resolve_attack(red, fleet, blue, guards, rng)
            if result.attacker_won:
                assert result.damage_to_defender >= 2
                assert result.damage_to_attacker == 0
            elif not result.tie:
                assert result.damage_to_defender == 0

    def test_asset_without_attack(self, make_faction, catalog):
        red = make_faction("red", "sol")
        harvesters = catalog.get("wealth_1_harvesters")
        result = resolve_attack(red, harvesters, red, harvesters, make_rng(1))
        assert result.damage_to_defender == 0
        assert result.damage_to_attacker == 0
