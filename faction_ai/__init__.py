"""
Faction AI for Stars Without Number faction turns.

Decides what an AI-controlled faction does each turn (goal, economy, scored
actions under a difficulty tier) and builds multi-turn strategic plans.
"""

from .asset_catalog import AssetCatalog, get_asset_catalog
from .errors import CatalogError, FactionAIError, TurnCancelled, UnknownFactionError, UnknownSystemError
from .models import ActionKind, Difficulty, Faction, StrategicIntent, WorldState
from .sector_loader import load_world, world_from_dict
from .strategic_planner import StrategicPlan, evaluate_plan, generate_strategic_plan, should_replan
from .turn_controller import (
    ActionQueue,
    FactionTurnController,
    MutationSink,
    ProgressStream,
    QueuedAction,
    TurnPhase,
    TurnStatus,
    WorldStateSink,
)

__all__ = [
    'AssetCatalog',
    'get_asset_catalog',
    'CatalogError',
    'FactionAIError',
    'TurnCancelled',
    'UnknownFactionError',
    'UnknownSystemError',
    'ActionKind',
    'Difficulty',
    'Faction',
    'StrategicIntent',
    'WorldState',
    'load_world',
    'world_from_dict',
    'StrategicPlan',
    'evaluate_plan',
    'generate_strategic_plan',
    'should_replan',
    'ActionQueue',
    'FactionTurnController',
    'MutationSink',
    'ProgressStream',
    'QueuedAction',
    'TurnPhase',
    'TurnStatus',
    'WorldStateSink',
]
