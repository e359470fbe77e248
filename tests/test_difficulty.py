"""
Tests for difficulty.py

Covers easy-mode noise, the combat predictor behind hard and expert, attack
exclusion and the expert retreat check.

Run with: python -m pytest tests/test_difficulty.py -v
"""

import pytest

from faction_ai.action_generator import generate_all_actions
from faction_ai.combat import CombatOddsOracle
from faction_ai.difficulty import (
    DifficultyTuning,
    apply_difficulty_scaling,
    get_difficulty_tuning,
    predict_combat_outcome,
    should_avoid_attack,
)
from faction_ai.evaluators import ScoringContext, UtilityScorer
from faction_ai.influence_map import calculate_influence_map
from faction_ai.models import ActionKind, Difficulty, StrategicIntent
from faction_ai.randomness import make_rng
from faction_ai.threat_assessment import generate_sector_threat_overview


def score(faction, world, catalog):
    context = ScoringContext(
        faction=faction,
        world=world,
        catalog=catalog,
        influence_map=calculate_influence_map(faction.id, world, catalog),
        threat_overview=generate_sector_threat_overview(faction.id, world, catalog),
        intent=StrategicIntent(),
    )
    return UtilityScorer().score_all(generate_all_actions(faction, world, catalog), context)


@pytest.fixture
def favored_attack(make_faction, make_asset, make_world):
    """Force 5 Strike Fleet against Force 2 Security Personnel at Tau"""
    red = make_faction("red", "sol", force=5, assets=[make_asset("r1", "force_4_strike_fleet", "tau")])
    blue = make_faction("blue", "rigel", force=2,
                        assets=[make_asset("b1", "force_1_security_personnel", "tau")])
    return red, blue, make_world(red, blue)


@pytest.fixture
def hopeless_attack(make_faction, make_asset, make_world):
    """Force 1 Militia against a Force 8 faction's Security Personnel"""
    red = make_faction("red", "sol", force=1, assets=[make_asset("r1", "force_1_militia_unit", "tau")])
    blue = make_faction("blue", "rigel", force=8,
                        assets=[make_asset("b1", "force_1_security_personnel", "tau")])
    return red, blue, make_world(red, blue)


class TestTuning:
    """Tests for tier defaults"""

    def test_only_easy_has_noise(self):
        assert get_difficulty_tuning("easy").easy_noise_range > 0
        for level in ("normal", "hard", "expert"):
            assert get_difficulty_tuning(level).easy_noise_range == 0

    def test_thresholds_rise_with_tier(self):
        assert get_difficulty_tuning("hard").min_win_probability == pytest.approx(0.4)
        assert get_difficulty_tuning("expert").min_win_probability == pytest.approx(0.5)

    def test_medium_is_normal(self):
        assert get_difficulty_tuning("medium").level == Difficulty.NORMAL


class TestEasyAndNormal:
    """Tests for noise and pass-through"""

    def test_easy_noise_varies_between_runs(self, favored_attack, catalog):
        red, _, world = favored_attack
        result = score(red, world, catalog)
        first = apply_difficulty_scaling(result, red, world, catalog, "easy", rng=make_rng(1))
        second = apply_difficulty_scaling(result, red, world, catalog, "easy", rng=make_rng(2))
        assert [a.score for a in first.adjusted_actions] != [a.score for a in second.adjusted_actions]

    def test_easy_noise_is_bounded(self, favored_attack, catalog):
        red, _, world = favored_attack
        result = score(red, world, catalog)
        noisy = apply_difficulty_scaling(result, red, world, catalog, "easy", rng=make_rng(7))
        original = {id(a.action): a.score for a in result.scored_actions}
        for scored in noisy.adjusted_actions:
            assert abs(scored.score - original[id(scored.action)]) <= 30.0 + 1e-9
            assert scored.score >= 0

    def test_normal_is_deterministic(self, favored_attack, catalog):
        red, _, world = favored_attack
        result = score(red, world, catalog)
        first = apply_difficulty_scaling(result, red, world, catalog, "normal")
        second = apply_difficulty_scaling(result, red, world, catalog, "normal")
        assert [a.score for a in first.adjusted_actions] == [a.score for a in result.scored_actions]
        assert [a.score for a in first.adjusted_actions] == [a.score for a in second.adjusted_actions]

    def test_input_result_untouched(self, favored_attack, catalog):
        red, _, world = favored_attack
        result = score(red, world, catalog)
        before = [a.score for a in result.scored_actions]
        apply_difficulty_scaling(result, red, world, catalog, "easy", rng=make_rng(3))
        assert [a.score for a in result.scored_actions] == before


class TestCombatPrediction:
    """Tests for predict_combat_outcome"""

    def test_favored_attack_recommended(self, favored_attack, catalog):
        red, blue, _ = favored_attack
        prediction = predict_combat_outcome(red, red.assets[0], catalog.get("force_4_strike_fleet"),
                                            blue, catalog.get("force_1_security_personnel"),
                                            get_difficulty_tuning("hard"))
        assert prediction.win_probability > 0.5
        assert prediction.recommendation == "attack"
        assert prediction.expected_damage_dealt == pytest.approx(7.0)

    def test_low_odds_avoided(self, hopeless_attack, catalog):
        red, blue, _ = hopeless_attack
        prediction = predict_combat_outcome(red, red.assets[0], catalog.get("force_1_militia_unit"),
                                            blue, catalog.get("force_1_security_personnel"),
                                            get_difficulty_tuning("expert"))
        assert prediction.win_probability < 0.5
        assert prediction.recommendation == "avoid"

    def test_custom_oracle_used(self, favored_attack, catalog):
        class Coinflip(CombatOddsOracle):
            def attack_odds(self, attacker_value, defender_value):
                return 0.1

        red, blue, _ = favored_attack
        prediction = predict_combat_outcome(red, red.assets[0], catalog.get("force_4_strike_fleet"),
                                            blue, catalog.get("force_1_security_personnel"),
                                            get_difficulty_tuning("hard"), oracle=Coinflip())
        assert prediction.win_probability == 0.1
        assert prediction.recommendation == "avoid"


class TestHardAndExpert:
    """Tests for attack filtering and retreat"""

    def test_hard_recommends_favored_attack(self, favored_attack, catalog):
        red, _, world = favored_attack
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "hard")
        attacks = [e for e in adjusted.evaluations if e.action.kind == ActionKind.ATTACK]
        assert attacks
        assert all(e.prediction.recommendation != "avoid" for e in attacks)
        assert all(e.prediction.win_probability > 0.5 for e in attacks)

    def test_hard_penalizes_but_keeps_avoid(self, hopeless_attack, catalog):
        red, _, world = hopeless_attack
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "hard")
        assert adjusted.actions_of_kind(ActionKind.ATTACK)
        assert adjusted.evaluations[0].adjustment == -50.0
        assert not adjusted.excluded

    def test_expert_excludes_avoid(self, hopeless_attack, catalog):
        red, _, world = hopeless_attack
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "expert")
        assert not adjusted.actions_of_kind(ActionKind.ATTACK)
        assert len(adjusted.excluded) == 1
        assert should_avoid_attack(adjusted.evaluations[0], "expert") is True
        assert should_avoid_attack(adjusted.evaluations[0], "normal") is False

    def test_expert_retreats_damaged_asset(self, make_faction, make_asset, make_world, catalog):
        """A crippled Strike Fleet sharing a system with a Gravtank Formation is pulled out"""
        red = make_faction("red", "sol", force=4, assets=[make_asset("r1", "force_4_strike_fleet", "tau", hp=2)])
        blue = make_faction("blue", "rigel", force=8,
                            assets=[make_asset("b1", "force_6_gravtank_formation", "tau")])
        world = make_world(red, blue)
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "expert")

        assert adjusted.flagged_for_retreat == ["r1"]
        assert adjusted.best_action.kind == ActionKind.MOVE
        assert adjusted.best_action.action.target_location != "tau"

    def test_normal_never_retreats(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", force=4, assets=[make_asset("r1", "force_4_strike_fleet", "tau", hp=2)])
        blue = make_faction("blue", "rigel", force=8,
                            assets=[make_asset("b1", "force_6_gravtank_formation", "tau")])
        world = make_world(red, blue)
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "normal")
        assert adjusted.flagged_for_retreat == []

    def test_tuning_override(self, hopeless_attack, catalog):
        red, _, world = hopeless_attack
        lenient = DifficultyTuning(level=Difficulty.EXPERT, min_win_probability=0.0)
        adjusted = apply_difficulty_scaling(score(red, world, catalog), red, world, catalog, "expert",
                                            tuning=lenient)
        assert not adjusted.excluded
