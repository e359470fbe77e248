"""
Tests for goal_selection.py

Covers goal weighting, best-goal selection, the change-goal hysteresis and
strategic intent derivation.

Run with: python -m pytest tests/test_goal_selection.py -v
"""

from unittest.mock import patch

from faction_ai.goal_selection import (
    GoalWeight,
    calculate_goal_weights,
    create_goal_instance,
    determine_strategic_intent,
    select_best_goal,
    should_change_goal,
)
from faction_ai.models import FactionTag, Goal, GoalType, StrategicFocus
from faction_ai.randomness import sequential_id_factory


def _weight(goal_type, final):
    return GoalWeight(goal_type, final, 0, 0, final)


class TestGoalWeights:
    """Tests for weight calculation"""

    def test_weights_cover_whole_catalog_in_order(self, make_faction, make_world):
        """One weight per goal type, in declaration order"""
        faction = make_faction("red", "sol")
        weights = calculate_goal_weights(faction, make_world(faction))
        assert [w.goal_type for w in weights] == list(GoalType)

    def test_weights_clamped(self, make_faction, make_world):
        """Final weights stay within 0..100"""
        faction = make_faction("red", "sol", force=8, cunning=8, wealth=8, fac_creds=50,
                               tags=[FactionTag.WARLIKE, FactionTag.FANATICAL])
        for weight in calculate_goal_weights(faction, make_world(faction)):
            assert 0 <= weight.final_weight <= 100

    def test_warlike_prefers_conquest(self, make_faction, make_world):
        """Warlike tag adds to Military Conquest and subtracts from Peaceable Kingdom"""
        plain = make_faction("a", "sol")
        warlike = make_faction("b", "sol", tags=[FactionTag.WARLIKE])
        world = make_world(plain, warlike)
        plain_w = {w.goal_type: w.final_weight for w in calculate_goal_weights(plain, world)}
        war_w = {w.goal_type: w.final_weight for w in calculate_goal_weights(warlike, world)}
        assert war_w[GoalType.MILITARY_CONQUEST] > plain_w[GoalType.MILITARY_CONQUEST]
        assert war_w[GoalType.PEACEABLE_KINGDOM] < plain_w[GoalType.PEACEABLE_KINGDOM]


class TestSelectBestGoal:
    """Tests for select_best_goal"""

    def test_untagged_faction_always_gets_a_goal(self, make_faction, make_world):
        """Expand Influence keeps at least one weight positive"""
        faction = make_faction("red", "sol")
        assert select_best_goal(faction, make_world(faction)) is not None

    def test_tie_keeps_catalog_order(self, make_faction, make_world):
        """Equal weights resolve to the earliest catalog entry"""
        faction = make_faction("red", "sol")
        tied = [_weight(g, 50) for g in GoalType]
        with patch('faction_ai.goal_selection.calculate_goal_weights', return_value=tied):
            assert select_best_goal(faction, make_world(faction)) == GoalType.MILITARY_CONQUEST

    def test_all_zero_returns_none(self, make_faction, make_world):
        """No positive weight means no goal"""
        faction = make_faction("red", "sol")
        zeros = [_weight(g, 0) for g in GoalType]
        with patch('faction_ai.goal_selection.calculate_goal_weights', return_value=zeros):
            assert select_best_goal(faction, make_world(faction)) is None


class TestShouldChangeGoal:
    """Tests for the change-goal threshold"""

    def _faction_with_goal(self, make_faction, goal_type):
        goal = Goal(id="g1", goal_type=goal_type, description="current")
        return make_faction("red", "sol", goal=goal)

    def test_no_goal_changes(self, make_faction, make_world):
        """A faction without a goal always picks one"""
        faction = make_faction("red", "sol")
        change, _ = should_change_goal(faction, make_world(faction))
        assert change is True

    def test_completed_goal_changes(self, make_faction, make_world):
        faction = self._faction_with_goal(make_faction, GoalType.EXPAND_INFLUENCE)
        faction.goal.is_completed = True
        change, reason = should_change_goal(faction, make_world(faction))
        assert change is True
        assert "completed" in reason

    def test_gap_above_threshold_changes(self, make_faction, make_world):
        """Best goal more than 30 points ahead triggers a change"""
        faction = self._faction_with_goal(make_faction, GoalType.PEACEABLE_KINGDOM)
        weights = [_weight(g, 10) for g in GoalType]
        weights[0] = _weight(GoalType.MILITARY_CONQUEST, 41)
        with patch('faction_ai.goal_selection.calculate_goal_weights', return_value=weights):
            change, _ = should_change_goal(faction, make_world(faction))
        assert change is True

    def test_gap_at_threshold_keeps_goal(self, make_faction, make_world):
        """A gap of exactly 30 is not enough"""
        faction = self._faction_with_goal(make_faction, GoalType.PEACEABLE_KINGDOM)
        weights = [_weight(g, 10) for g in GoalType]
        weights[0] = _weight(GoalType.MILITARY_CONQUEST, 40)
        with patch('faction_ai.goal_selection.calculate_goal_weights', return_value=weights):
            change, reason = should_change_goal(faction, make_world(faction))
        assert change is False
        assert reason == "Current goal remains optimal"


class TestStrategicIntent:
    """Tests for determine_strategic_intent"""

    def test_military_goal_targets_strongest_rival(self, make_faction, make_world):
        me = make_faction("red", "sol", force=3)
        weak = make_faction("weak", "vega")
        strong = make_faction("strong", "rigel", force=5, cunning=5)
        intent = determine_strategic_intent(me, GoalType.MILITARY_CONQUEST, make_world(me, weak, strong))
        assert intent.primary_focus == StrategicFocus.MILITARY
        assert intent.target_faction_id == "strong"

    def test_destroy_the_foe_targets_weakest_rival(self, make_faction, make_world):
        me = make_faction("red", "sol", force=3)
        weak = make_faction("weak", "vega")
        strong = make_faction("strong", "rigel", force=5, cunning=5)
        intent = determine_strategic_intent(me, GoalType.DESTROY_THE_FOE, make_world(me, weak, strong))
        assert intent.target_faction_id == "weak"

    def test_no_goal_is_defensive(self, make_faction, make_world):
        me = make_faction("red", "sol")
        intent = determine_strategic_intent(me, None, make_world(me))
        assert intent.primary_focus == StrategicFocus.DEFENSIVE
        assert intent.target_faction_id is None

    def test_aggression_clamped_and_lowered_by_damage(self, make_faction, make_world):
        hurt = make_faction("red", "sol", hp=3, max_hp=15)
        intent = determine_strategic_intent(hurt, GoalType.PEACEABLE_KINGDOM, make_world(hurt))
        assert 0 <= intent.aggression < 50

    def test_homeworld_is_first_priority_system(self, make_faction, make_asset, make_world):
        me = make_faction("red", "sol", assets=[make_asset("a1", "force_1_militia_unit", "tau")])
        intent = determine_strategic_intent(me, GoalType.MILITARY_CONQUEST, make_world(me))
        assert intent.priority_systems[:2] == ["sol", "tau"]


class TestGoalInstances:
    """Tests for create_goal_instance"""

    def test_military_conquest_target_is_force(self, make_faction):
        faction = make_faction("red", "sol", force=4)
        goal = create_goal_instance(GoalType.MILITARY_CONQUEST, faction, sequential_id_factory("goal"))
        assert goal.id == "goal-1"
        assert goal.progress.target == 4
        assert goal.progress.current == 0

    def test_difficult_goal_flagged(self, make_faction):
        goal = create_goal_instance(GoalType.DESTROY_THE_FOE, make_faction("red", "sol"))
        assert goal.difficulty == 2
