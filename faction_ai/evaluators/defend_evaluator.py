"""
Defend Evaluator

Defending is passive and mostly means "do nothing", so it starts very low and
only becomes attractive under real threat or at a threatened homeworld.
"""

from typing import List, Tuple

from ..models import ActionKind
from ..strategy_config import get_config
from .base import ActionEvaluator, CandidateAction, ScoringContext

BASE_SCORE = 5.0
HIGH_DANGER_BONUS = 25.0


class DefendEvaluator(ActionEvaluator):
    kind = ActionKind.DEFEND

    def __init__(self):
        super().__init__("Defend")
        config = get_config()
        self.base_score = config.get_weight('defend', 'base_score', BASE_SCORE)
        self.high_danger_bonus = config.get_weight('defend', 'high_danger_bonus', HIGH_DANGER_BONUS)

    def evaluate(self, action: CandidateAction, context: ScoringContext) -> Tuple[float, List[str]]:
        score = self.base_score
        reasons: List[str] = []
        danger = context.danger_at(action.source_location)

        if danger is not None and danger > 70:
            score += self.high_danger_bonus
            reasons.append("high threat level")
        elif danger is not None and danger > 50:
            score += 12
            reasons.append("moderate threat")

        if action.source_location == context.faction.homeworld:
            if danger is not None and danger > 40:
                score += 15
                reasons.append("defending threatened homeworld")
            else:
                score += 5
                reasons.append("homeworld garrison")

        damaged = [a for a in context.faction.assets_at(action.source_location) if a.hp < a.max_hp]
        if damaged:
            score += 5
            reasons.append("protecting damaged assets")

        return max(0.0, score), reasons or ["passive stance"]
