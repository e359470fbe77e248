"""
Tests for the action evaluators and the utility scorer.

Covers per-kind base utility, personality and goal synergy layering,
non-negative scores, stable ordering and the Warlike attack preference.

Run with: python -m pytest tests/test_evaluators.py -v
"""

import pytest

from faction_ai.action_generator import generate_all_actions
from faction_ai.evaluators import (
    AttackEvaluator,
    CandidateAction,
    DefendEvaluator,
    ExpandEvaluator,
    MoveEvaluator,
    ScorerConfig,
    ScoringContext,
    UtilityScorer,
)
from faction_ai.evaluators.personality import calculate_goal_synergy, calculate_tag_modifier
from faction_ai.evaluators.utility_scorer import format_reasoning
from faction_ai.goal_selection import determine_strategic_intent
from faction_ai.influence_map import calculate_influence_map
from faction_ai.models import ActionKind, FactionTag, GoalType, StrategicFocus, StrategicIntent
from faction_ai.threat_assessment import generate_sector_threat_overview


def build_context(faction, world, catalog, intent=None):
    return ScoringContext(
        faction=faction,
        world=world,
        catalog=catalog,
        influence_map=calculate_influence_map(faction.id, world, catalog),
        threat_overview=generate_sector_threat_overview(faction.id, world, catalog),
        intent=intent or StrategicIntent(),
    )


@pytest.fixture
def skirmish(make_faction, make_asset, make_world):
    """Red militia and Blue security personnel share Tau"""
    red = make_faction("red", "sol", force=6, fac_creds=6, tags=[FactionTag.WARLIKE],
                       assets=[make_asset("r1", "force_1_militia_unit", "tau")])
    blue = make_faction("blue", "rigel", force=2,
                        assets=[make_asset("b1", "force_1_security_personnel", "tau")])
    return red, blue, make_world(red, blue)


class TestAttackEvaluator:
    """Tests for attack base utility"""

    def test_kill_shot_on_weak_target(self, skirmish, catalog):
        """Militia (1d6, avg 3.5) against 3 HP Security Personnel is a likely kill"""
        red, blue, world = skirmish
        action = CandidateAction(ActionKind.ATTACK, "r1", "Militia Unit", "tau", "Attack",
                                 target_faction_id="blue", target_asset_id="b1")
        score, reasons = AttackEvaluator().evaluate(action, build_context(red, world, catalog))
        assert "likely kill shot!" in reasons
        assert "target near destruction" in reasons
        assert score > 100

    def test_missing_target_scores_zero(self, skirmish, catalog):
        red, blue, world = skirmish
        action = CandidateAction(ActionKind.ATTACK, "r1", "Militia Unit", "tau", "Attack",
                                 target_faction_id="blue", target_asset_id="gone")
        score, reasons = AttackEvaluator().evaluate(action, build_context(red, world, catalog))
        assert score == 0.0
        assert reasons == ["invalid target"]


class TestOtherEvaluators:
    """Tests for move, expand and defend base utility"""

    def test_expand_low_funds_penalized(self, make_faction, make_asset, make_world, catalog):
        poor = make_faction("red", "sol", fac_creds=2, assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        rich = make_faction("red", "sol", fac_creds=20, assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        action = CandidateAction(ActionKind.EXPAND, "", "Faction", "tau", "Expand", target_location="tau")
        poor_score, poor_reasons = ExpandEvaluator().evaluate(action, build_context(poor, make_world(poor), catalog))
        rich_score, _ = ExpandEvaluator().evaluate(action, build_context(rich, make_world(rich), catalog))
        assert "low on credits" in poor_reasons
        assert rich_score > poor_score

    def test_defend_homeworld_garrison(self, make_faction, make_asset, make_world, catalog):
        faction = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "sol")])
        action = CandidateAction(ActionKind.DEFEND, "", "Garrison", "sol", "Defend")
        score, reasons = DefendEvaluator().evaluate(action, build_context(faction, make_world(faction), catalog))
        assert score >= 5
        assert any("homeworld" in r for r in reasons)

    def test_move_into_attack_position(self, make_faction, make_asset, make_world, catalog):
        """A combat starship moving onto an attackable enemy gets the position bonus"""
        red = make_faction("red", "sol", force=4, assets=[make_asset("r1", "force_4_strike_fleet", "sol")])
        blue = make_faction("blue", "rigel", assets=[make_asset("b1", "force_1_security_personnel", "tau")])
        world = make_world(red, blue)
        action = CandidateAction(ActionKind.MOVE, "r1", "Strike Fleet", "sol", "Move", target_location="tau")
        score, reasons = MoveEvaluator().evaluate(action, build_context(red, world, catalog))
        assert "attack position" in reasons
        assert score >= 75


class TestPersonality:
    """Tests for tag modifiers and goal synergy"""

    def test_warlike_favors_attacks(self, make_faction):
        faction = make_faction("red", "sol", tags=[FactionTag.WARLIKE])
        action = CandidateAction(ActionKind.ATTACK, "r1", "x", "tau", "Attack")
        modifier, reasons = calculate_tag_modifier(action, faction)
        assert modifier == 15
        assert reasons == ["Warlike favors aggression"]

    def test_colonists_discourage_attacks(self, make_faction):
        faction = make_faction("red", "sol", tags=[FactionTag.COLONISTS])
        action = CandidateAction(ActionKind.ATTACK, "r1", "x", "tau", "Attack")
        modifier, _ = calculate_tag_modifier(action, faction)
        assert modifier == 0  # aggression -10 is not below -10

    def test_military_focus_attack_synergy(self):
        intent = StrategicIntent(primary_focus=StrategicFocus.MILITARY, aggression=80, target_faction_id="blue")
        action = CandidateAction(ActionKind.ATTACK, "r1", "x", "tau", "Attack", target_faction_id="blue")
        synergy, reasons = calculate_goal_synergy(action, intent)
        assert synergy == 40 + 30 + 25
        assert "targeting primary threat" in reasons


class TestUtilityScorer:
    """Tests for the combined scorer"""

    def test_scores_never_negative(self, make_faction, make_asset, make_world, catalog):
        """A penalty-heavy action clamps at zero"""
        faction = make_faction("red", "sol", tags=[FactionTag.EXCHANGE_CONSULATE],
                               assets=[make_asset("r1", "force_1_militia_unit", "tau", hp=1)])
        enemy = make_faction("blue", "rigel", force=8,
                             assets=[make_asset("b1", "force_6_gravtank_formation", "tau")])
        world = make_world(faction, enemy)
        intent = StrategicIntent(primary_focus=StrategicFocus.DEFENSIVE, aggression=0)
        scorer = UtilityScorer(config=ScorerConfig(base_weight=1.0, tag_weight=3.0, goal_weight=3.0))
        result = scorer.score_all(generate_all_actions(faction, world, catalog),
                                  build_context(faction, world, catalog, intent))
        assert result.scored_actions
        assert all(a.score >= 0 for a in result.scored_actions)

    def test_warlike_military_ranks_attack_first(self, skirmish, catalog):
        """Warlike high-Force faction with a legal attack and military focus prefers attacking"""
        red, blue, world = skirmish
        intent = determine_strategic_intent(red, GoalType.MILITARY_CONQUEST, world)
        assert intent.primary_focus == StrategicFocus.MILITARY

        result = UtilityScorer().score_all(generate_all_actions(red, world, catalog),
                                           build_context(red, world, catalog, intent))
        top = result.scored_actions[:3]
        assert any(a.kind == ActionKind.ATTACK for a in top)
        assert result.recommended_kind == ActionKind.ATTACK

    def test_equal_scores_keep_generation_order(self, make_faction, make_asset, make_world, catalog):
        faction = make_faction("red", "sol", assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        world = make_world(faction)
        first = CandidateAction(ActionKind.DEFEND, "", "Garrison", "tau", "first")
        second = CandidateAction(ActionKind.DEFEND, "", "Garrison", "tau", "second")
        result = UtilityScorer().score_all([first, second], build_context(faction, world, catalog))
        assert [a.action.description for a in result.scored_actions] == ["first", "second"]

    def test_unhandled_kind_gets_flat_base(self, make_faction, make_world, catalog):
        faction = make_faction("red", "sol")
        world = make_world(faction)
        action = CandidateAction(ActionKind.DEFEND, "", "Garrison", "deneb", "Defend")
        scored = UtilityScorer(evaluators=[]).score_action(action, build_context(faction, world, catalog))
        assert scored.base_utility == 10.0
        assert scored.reasoning[0] == "Base: unknown action type"

    def test_reasoning_has_three_parts(self, skirmish, catalog):
        red, blue, world = skirmish
        result = UtilityScorer().score_all(generate_all_actions(red, world, catalog),
                                           build_context(red, world, catalog))
        line = format_reasoning(result.best_action)
        assert line.startswith("Base: ")
        assert "Tags: " in line and "Goal: " in line

    def test_no_candidates(self, make_faction, make_world, catalog):
        faction = make_faction("red", "sol")
        world = make_world(faction)
        result = UtilityScorer().score_all([], build_context(faction, world, catalog))
        assert result.best_action is None
        assert result.reasoning.endswith("No viable actions found")


class TestStrategicValue:
    """High-value systems lift expand and move scores"""

    @staticmethod
    def _make_hub(world):
        tau = world.get_system("tau")
        tau.tech_level, tau.population, tau.routes = 5, 6, ["sol", "vega", "rigel", "deneb"]

    @staticmethod
    def _make_backwater(world):
        tau = world.get_system("tau")
        tau.tech_level, tau.population, tau.routes = 0, 0, []

    def test_expand_prefers_hub(self, make_faction, make_asset, make_world, catalog):
        faction = make_faction("red", "sol", fac_creds=6, assets=[make_asset("r1", "force_1_militia_unit", "tau")])
        world = make_world(faction)
        action = CandidateAction(ActionKind.EXPAND, "", "Faction", "tau", "Expand", target_location="tau")

        self._make_backwater(world)
        backwater_score, backwater_reasons = ExpandEvaluator().evaluate(action, build_context(faction, world, catalog))
        self._make_hub(world)
        hub_score, hub_reasons = ExpandEvaluator().evaluate(action, build_context(faction, world, catalog))

        assert "high strategic value" in hub_reasons
        assert "high strategic value" not in backwater_reasons
        assert hub_score > backwater_score

    def test_move_prefers_hub(self, make_faction, make_asset, make_world, catalog):
        faction = make_faction("red", "sol", force=4, assets=[make_asset("r1", "force_4_strike_fleet", "sol")])
        world = make_world(faction)
        action = CandidateAction(ActionKind.MOVE, "r1", "Strike Fleet", "sol", "Move", target_location="tau")

        self._make_backwater(world)
        backwater_score, backwater_reasons = MoveEvaluator().evaluate(action, build_context(faction, world, catalog))
        self._make_hub(world)
        hub_score, hub_reasons = MoveEvaluator().evaluate(action, build_context(faction, world, catalog))

        assert "strategic location" in hub_reasons
        assert "strategic location" not in backwater_reasons
        assert hub_score > backwater_score
