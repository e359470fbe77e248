"""
Attack Evaluator

Base utility for one asset attacking a co-located rival asset.

Strategy:
- Attacks start high so factions don't turtle forever
- Kill shots and heavily damaged targets are favoured
- Expensive targets and bases of influence are worth the risk
- HP advantage helps, a counterattack that could kill us hurts
- A weakened attacker is discouraged but not forbidden
"""

from typing import List, Tuple

from ..combat import expected_damage
from ..models import ActionKind
from ..strategy_config import get_config
from .base import ActionEvaluator, CandidateAction, ScoringContext

BASE_SCORE = 50.0
KILL_BONUS = 40.0
HEAVY_DAMAGE_BONUS = 25.0


class AttackEvaluator(ActionEvaluator):
    kind = ActionKind.ATTACK

    def __init__(self):
        super().__init__("Attack")
        config = get_config()
        self.base_score = config.get_weight('attack', 'base_score', BASE_SCORE)
        self.kill_bonus = config.get_weight('attack', 'kill_bonus', KILL_BONUS)
        self.heavy_damage_bonus = config.get_weight('attack', 'heavy_damage_bonus', HEAVY_DAMAGE_BONUS)

    def evaluate(self, action: CandidateAction, context: ScoringContext) -> Tuple[float, List[str]]:
        attacker = context.own_asset(action.acting_asset_id)
        attacker_def = context.catalog.get(attacker.definition_id) if attacker else None
        found = context.find_enemy_asset(action.target_faction_id, action.target_asset_id)
        target = found[1] if found else None
        target_def = context.catalog.get(target.definition_id) if target else None

        if attacker_def is None or target_def is None:
            return 0.0, ["invalid target"]

        score = self.base_score
        reasons: List[str] = []

        our_damage = expected_damage(attacker_def.attack.damage) if attacker_def.attack else 0.0
        if our_damage >= target.hp:
            score += self.kill_bonus
            reasons.append("likely kill shot!")
        elif our_damage >= target.hp * 0.7:
            score += self.heavy_damage_bonus
            reasons.append("heavy damage expected")

        if target.hp <= 3:
            score += 30
            reasons.append("target near destruction")
        elif target.hp <= 5:
            score += 15
            reasons.append("target weakened")

        if target_def.cost >= 15:
            score += 25
            reasons.append("high-value target")
        elif target_def.cost >= 8:
            score += 15
            reasons.append("moderate-value target")
        elif target_def.cost >= 4:
            score += 8
            reasons.append("reasonable target")

        if target.is_base:
            score += 20
            reasons.append("targeting enemy base")

        hp_ratio = attacker.hp / max(1, target.hp)
        if hp_ratio >= 2:
            score += 25
            reasons.append("strong HP advantage")
        elif hp_ratio >= 1.3:
            score += 15
            reasons.append("HP advantage")
        elif hp_ratio < 0.7:
            score -= 10
            reasons.append("HP disadvantage")

        if target_def.counterattack:
            counter = expected_damage(target_def.counterattack)
            if counter >= attacker.hp:
                score -= 20
                reasons.append("risky counterattack")
            elif counter >= attacker.hp * 0.5:
                score -= 8
                reasons.append("moderate counterattack risk")

        danger = context.danger_at(action.source_location)
        if danger is not None and danger < 30:
            score += 10
            reasons.append("favorable battlefield")

        if attacker.hp <= 2 and attacker.max_hp > 4:
            score -= 10
            reasons.append("attacker weakened")
        if attacker.hp >= attacker.max_hp * 0.8:
            score += 10
            reasons.append("attacker healthy")

        return max(0.0, score), reasons or ["standard attack"]
