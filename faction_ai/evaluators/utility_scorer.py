"""
Utility Scorer

Combines the per-kind evaluators with personality and goal synergy into a
single ranked list of actions.

Final score = max(0, base*base_weight + tag*tag_weight + goal*goal_weight)
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from ..models import ActionKind, Faction
from ..strategy_config import get_config
from .attack_evaluator import AttackEvaluator
from .base import ActionEvaluator, CandidateAction, ScoredAction, ScoringContext
from .defend_evaluator import DefendEvaluator
from .expand_evaluator import ExpandEvaluator
from .move_evaluator import MoveEvaluator
from .personality import calculate_goal_synergy, calculate_tag_modifier

logger = logging.getLogger(__name__)


@dataclass
class ScorerConfig:
    base_weight: float = 1.0
    tag_weight: float = 1.0
    goal_weight: float = 1.0
    min_score_threshold: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "ScorerConfig":
        return cls(
            base_weight=data.get('base_weight', 1.0),
            tag_weight=data.get('tag_weight', 1.0),
            goal_weight=data.get('goal_weight', 1.0),
            min_score_threshold=data.get('min_score_threshold', 0.0),
        )


def get_scorer_config() -> ScorerConfig:
    return ScorerConfig.from_dict(get_config().get_section('scorer_weights'))


@dataclass
class ActionScoringResult:
    faction: Faction
    scored_actions: List[ScoredAction] = field(default_factory=list)
    best_action: Optional[ScoredAction] = None
    actions_by_kind: Dict[ActionKind, List[ScoredAction]] = field(default_factory=dict)
    candidate_count: int = 0
    reasoning: str = ""

    @property
    def recommended_kind(self) -> Optional[ActionKind]:
        return self.best_action.kind if self.best_action else None

    def refresh(self, threshold: float = 0.0):
        """Re-sort, regroup and recompute the best action after scores change"""
        ranked = [a for a in self.scored_actions if a.score >= threshold]
        ranked.sort(key=lambda a: (-a.score, a.order))
        self.scored_actions = ranked
        self.actions_by_kind = {kind: [] for kind in ActionKind}
        for scored in ranked:
            self.actions_by_kind[scored.kind].append(scored)
        self.best_action = ranked[0] if ranked else None

        parts = [f"Generated {self.candidate_count} potential actions",
                 f"{len(ranked)} passed threshold"]
        if self.best_action:
            parts.append(f"Best: {self.best_action.action.description} (score: {self.best_action.score:.0f})")
        else:
            parts.append("No viable actions found")
        self.reasoning = ". ".join(parts)


class UtilityScorer:
    """
    Runs the kind evaluators and layers personality and goal synergy on top.
    """

    def __init__(self, evaluators: Optional[List[ActionEvaluator]] = None,
                 config: Optional[ScorerConfig] = None):
        self.evaluators = evaluators if evaluators is not None else [
            MoveEvaluator(), AttackEvaluator(), ExpandEvaluator(), DefendEvaluator(),
        ]
        self.config = config or get_scorer_config()
        self.logger = logging.getLogger(__name__)

    def _evaluator_for(self, action: CandidateAction) -> Optional[ActionEvaluator]:
        for evaluator in self.evaluators:
            if evaluator.can_evaluate(action):
                return evaluator
        return None

    def score_action(self, action: CandidateAction, context: ScoringContext, order: int = 0) -> ScoredAction:
        evaluator = self._evaluator_for(action)
        if evaluator is not None:
            base, base_reasons = evaluator.evaluate(action, context)
        else:
            base, base_reasons = 10.0, ["unknown action type"]

        tag, tag_reasons = calculate_tag_modifier(action, context.faction)
        goal, goal_reasons = calculate_goal_synergy(action, context.intent)

        cfg = self.config
        score = max(0.0, base * cfg.base_weight + tag * cfg.tag_weight + goal * cfg.goal_weight)
        scored = ScoredAction(
            action=action,
            score=score,
            base_utility=base,
            tag_modifier=tag,
            goal_synergy=goal,
            order=order,
            reasoning=[
                f"Base: {', '.join(base_reasons)}",
                f"Tags: {', '.join(tag_reasons) if tag_reasons else 'no tag modifiers'}",
                f"Goal: {', '.join(goal_reasons) if goal_reasons else 'no goal synergy'}",
            ],
        )
        if evaluator is not None:
            evaluator.log_evaluation(scored)
        return scored

    def score_all(self, candidates: List[CandidateAction], context: ScoringContext) -> ActionScoringResult:
        """Score, filter and rank candidates. Ties keep generation order."""
        result = ActionScoringResult(faction=context.faction, candidate_count=len(candidates))
        result.scored_actions = [self.score_action(c, context, order=i) for i, c in enumerate(candidates)]
        result.refresh(self.config.min_score_threshold)

        if result.best_action:
            self.logger.info(f"✅ Best action for {context.faction.name}: {result.best_action.action.description} "
                             f"(score: {result.best_action.score:.1f})")
        else:
            self.logger.info(f"⚠️ No viable actions for {context.faction.name}")
        return result


def format_reasoning(scored: ScoredAction) -> str:
    """'Base: ... Tags: ... Goal: ...' in one line"""
    return ". ".join(scored.reasoning)
