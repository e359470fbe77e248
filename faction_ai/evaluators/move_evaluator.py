"""
Move Evaluator

Base utility for relocating an asset.

Strategy:
- Attackers moving next to an enemy they can legally damage get a big bonus,
  more for soft targets, enemy bases and healthy attackers
- Non-combat assets are discouraged from walking into enemies
- Healthy attackers shouldn't leave a fight for an empty system
- Badly damaged assets are encouraged to retreat to safer systems
"""

from typing import List, Tuple

from ..models import ActionKind
from ..strategy_config import get_config
from .base import ActionEvaluator, CandidateAction, ScoringContext

BASE_SCORE = 15.0
ATTACK_POSITION_BONUS = 60.0
ENEMY_BASE_BONUS = 25.0
HEALTHY_ATTACKER_BONUS = 15.0
WEAK_ENEMY_BONUS = 20.0
WEAK_ENEMY_HP = 6
APPROACH_BONUS = 30.0
TOWARD_ENEMY_PENALTY = -20.0
EXPANSION_BONUS = 10.0
LOW_CONTROL_INFLUENCE = 30.0
RETREAT_BONUS = 25.0
SAFE_DANGER = 30.0
ABANDON_FIGHT_PENALTY = -30.0
STRATEGIC_BONUS = 8.0
STRATEGIC_VALUE = 50.0


class MoveEvaluator(ActionEvaluator):
    kind = ActionKind.MOVE

    def __init__(self):
        super().__init__("Move")
        config = get_config()
        self.attack_position_bonus = config.get_weight('move', 'attack_position_bonus', ATTACK_POSITION_BONUS)
        self.toward_enemy_penalty = config.get_weight('move', 'toward_enemy_penalty', TOWARD_ENEMY_PENALTY)
        self.retreat_bonus = config.get_weight('move', 'retreat_bonus', RETREAT_BONUS)
        self.abandon_fight_penalty = config.get_weight('move', 'abandon_fight_penalty', ABANDON_FIGHT_PENALTY)

    def evaluate(self, action: CandidateAction, context: ScoringContext) -> Tuple[float, List[str]]:
        score = BASE_SCORE
        reasons: List[str] = []

        mover = context.own_asset(action.acting_asset_id)
        definition = context.catalog.get(mover.definition_id) if mover else None
        can_attack = definition is not None and definition.attack is not None

        at_target = context.enemies_at(action.target_location)
        at_source = context.enemies_at(action.source_location)
        enemy_hp_at_target = sum(e.asset.hp for e in at_target)
        enemy_base_at_target = any(e.asset.is_base for e in at_target)

        attackable = False
        if can_attack:
            wanted = definition.attack.defender_attribute
            attackable = any(e.definition is not None and e.definition.category == wanted for e in at_target)

        if can_attack and attackable:
            score += self.attack_position_bonus
            reasons.append("attack position")
            if enemy_base_at_target:
                score += ENEMY_BASE_BONUS
                reasons.append("enemy base")
            if mover.hp >= mover.max_hp * 0.6:
                score += HEALTHY_ATTACKER_BONUS
                reasons.append("healthy attacker")
            if enemy_hp_at_target <= WEAK_ENEMY_HP:
                score += WEAK_ENEMY_BONUS
                reasons.append("weak enemy")
        elif can_attack and at_target:
            score += APPROACH_BONUS
            reasons.append("approaching enemies")

        if not can_attack and at_target:
            score += self.toward_enemy_penalty
            reasons.append("non-combat asset near enemies")

        target_hex = context.influence_map.get(action.target_location) if action.target_location else None
        if target_hex is not None:
            our_control = target_hex.faction_influence.get(context.faction.id, 0.0)
            if our_control < LOW_CONTROL_INFLUENCE and not at_target:
                score += EXPANSION_BONUS
                reasons.append("expanding territory")

        if mover is not None and mover.hp < mover.max_hp * 0.4 and at_source:
            danger = context.danger_at(action.target_location)
            if danger is None or danger < SAFE_DANGER:
                score += self.retreat_bonus
                reasons.append("retreating damaged asset")

        if can_attack and at_source and not at_target:
            score += self.abandon_fight_penalty
            reasons.append("stay and fight")

        if target_hex is not None and target_hex.strategic_value > STRATEGIC_VALUE:
            score += STRATEGIC_BONUS
            reasons.append("strategic location")

        return max(0.0, score), reasons or ["standard movement"]
