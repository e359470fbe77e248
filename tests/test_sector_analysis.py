"""
Tests for influence_map.py and threat_assessment.py

Run with: python -m pytest tests/test_sector_analysis.py -v
"""

import pytest

from faction_ai.influence_map import HOMEWORLD_INFLUENCE, calculate_influence_map, find_best_expansion_targets
from faction_ai.threat_assessment import generate_sector_threat_overview, should_consider_retreat


class TestInfluenceMap:
    """Tests for calculate_influence_map"""

    def test_garrisoned_homeworld_is_friendly(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "sol")])
        influence = calculate_influence_map("red", make_world(red), catalog)
        assert "sol" in influence.friendly_controlled
        assert influence.get("sol").controlling_faction_id == "red"
        assert influence.influence_of("sol", "red") == pytest.approx(2.6 + HOMEWORLD_INFLUENCE)

    def test_influence_falls_off_with_distance(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "sol")])
        influence = calculate_influence_map("red", make_world(red), catalog)
        assert influence.influence_of("tau", "red") == pytest.approx(1.3)
        assert influence.influence_of("vega", "red") == 0.0
        assert "tau" in influence.unoccupied

    def test_even_split_is_contested(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        blue = make_faction("blue", "rigel", assets=[make_asset("b1", "force_1_militia_unit", "tau")])
        influence = calculate_influence_map("red", make_world(red, blue), catalog)
        assert "tau" in influence.contested
        assert influence.get("tau").contested_level == 10

    def test_stealth_dampens_influence(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "tau", stealthed=True)])
        influence = calculate_influence_map("red", make_world(red), catalog)
        assert influence.influence_of("tau", "red") == pytest.approx(2.6 * 0.3)

    def test_unknown_definition_skipped(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "no_such_asset", "tau", hp=3)])
        influence = calculate_influence_map("red", make_world(red), catalog)
        assert influence.influence_of("tau", "red") == 0.0


class TestThreatOverview:
    """Tests for generate_sector_threat_overview"""

    def test_alone_is_safe_and_aggressive(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        overview = generate_sector_threat_overview("red", make_world(red), catalog)
        assert set(overview.system_threats) == {"sol", "tau"}
        assert overview.threatened_systems == []
        assert overview.overall_threat_level == 0.0
        assert overview.primary_threat is None
        assert overview.recommended_posture == "aggressive"

    def test_neighbouring_army_is_primary_threat(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol")
        blue = make_faction("blue", "rigel", force=6,
                            assets=[make_asset("b1", "force_6_gravtank_formation", "tau")])
        overview = generate_sector_threat_overview("red", make_world(red, blue), catalog)
        assert overview.primary_threat.faction_id == "blue"
        assert overview.danger_at("sol") > 0
        assert overview.danger_at("deneb") is None
        assert overview.recommended_posture != "aggressive"

    def test_unknown_faction_gives_empty_overview(self, make_faction, make_world, catalog):
        overview = generate_sector_threat_overview("ghost", make_world(make_faction("red", "sol")), catalog)
        assert overview.system_threats == {}


class TestRetreatAdvice:
    """Tests for should_consider_retreat"""

    def test_no_threat_never_retreats(self, make_faction, make_world, catalog):
        """An undefended system with nothing nearby is not a reason to run"""
        red = make_faction("red", "sol")
        advice = should_consider_retreat("tau", red, make_world(red), catalog)
        assert advice.should_retreat is False
        assert advice.reason == "Defensive position is adequate"

    def test_overwhelmed_position(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol",
                           assets=[make_asset("r1", "force_1_security_personnel", "tau", hp=1)])
        blue = make_faction("blue", "rigel", force=6,
                            assets=[make_asset("b1", "force_6_gravtank_formation", "tau")])
        advice = should_consider_retreat("tau", red, make_world(red, blue), catalog)
        assert advice.should_retreat is True
        assert advice.urgency == "critical"


class TestExpansionTargets:
    """Tests for find_best_expansion_targets"""

    def test_nearby_free_systems_first(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "sol")])
        world = make_world(red)
        influence = calculate_influence_map("red", world, catalog)
        targets = find_best_expansion_targets(influence, red, world)
        assert [s.id for s in targets][:2] == ["tau", "vega"]
        assert "sol" not in [s.id for s in targets]

    def test_limit(self, make_faction, make_world, catalog):
        red = make_faction("red", "sol")
        world = make_world(red)
        influence = calculate_influence_map("red", world, catalog)
        assert len(find_best_expansion_targets(influence, red, world, limit=2)) == 2


class TestStrategicValueScale:
    """Tests for calculate_system_strategic_value"""

    def test_best_case_hub_reaches_top_of_scale(self, make_faction, make_world, catalog):
        red = make_faction("red", "sol")
        world = make_world(red)
        sol = world.get_system("sol")
        sol.tech_level, sol.population = 5, 6
        sol.routes = ["tau", "vega", "rigel", "deneb", "tau", "vega"]
        influence = calculate_influence_map("red", world, catalog)
        assert influence.get("sol").strategic_value == pytest.approx(100.0)

    def test_values_within_scale(self, make_faction, make_asset, make_world, catalog):
        red = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        blue = make_faction("blue", "rigel", assets=[make_asset("b1", "force_1_militia_unit", "tau")])
        influence = calculate_influence_map("red", make_world(red, blue), catalog)
        for hex_influence in influence.hexes.values():
            assert 0.0 <= hex_influence.strategic_value <= 100.0
