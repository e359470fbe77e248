"""
Action evaluators and the utility scorer.
"""

from .base import ActionEvaluator, CandidateAction, EnemyPresence, ScoredAction, ScoringContext
from .move_evaluator import MoveEvaluator
from .attack_evaluator import AttackEvaluator
from .expand_evaluator import ExpandEvaluator
from .defend_evaluator import DefendEvaluator
from .utility_scorer import ActionScoringResult, ScorerConfig, UtilityScorer, get_scorer_config

__all__ = [
    'ActionEvaluator',
    'CandidateAction',
    'EnemyPresence',
    'ScoredAction',
    'ScoringContext',
    'MoveEvaluator',
    'AttackEvaluator',
    'ExpandEvaluator',
    'DefendEvaluator',
    'ActionScoringResult',
    'ScorerConfig',
    'UtilityScorer',
    'get_scorer_config',
]
