"""
Expand Evaluator - planting a Base of Influence where the faction already operates.
"""

from typing import List, Tuple

from ..models import ActionKind
from ..strategy_config import get_config
from .base import ActionEvaluator, CandidateAction, ScoringContext

BASE_SCORE = 40.0
LOW_FUNDS_PENALTY = -20.0
HIGH_STRATEGIC_VALUE = 60.0
HIGH_VALUE_BONUS = 20.0


class ExpandEvaluator(ActionEvaluator):
    kind = ActionKind.EXPAND

    def __init__(self):
        super().__init__("Expand")
        config = get_config()
        self.base_score = config.get_weight('expand', 'base_score', BASE_SCORE)
        self.low_funds_penalty = config.get_weight('expand', 'low_funds_penalty', LOW_FUNDS_PENALTY)

    def evaluate(self, action: CandidateAction, context: ScoringContext) -> Tuple[float, List[str]]:
        score = self.base_score
        reasons: List[str] = []

        target_hex = context.influence_map.get(action.target_location) if action.target_location else None
        if target_hex is not None:
            if target_hex.strategic_value > HIGH_STRATEGIC_VALUE:
                score += HIGH_VALUE_BONUS
                reasons.append("high strategic value")
            if target_hex.faction_influence.get(context.faction.id, 0.0) > 50:
                score += 15
                reasons.append("strong existing presence")

        if context.faction.fac_creds > 10:
            score += 10
            reasons.append("can afford expansion")
        if context.faction.fac_creds < 5:
            score += self.low_funds_penalty
            reasons.append("low on credits")

        return max(0.0, score), reasons or ["standard expansion"]
