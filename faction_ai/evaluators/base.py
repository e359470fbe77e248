"""
Base Classes for Action Scoring

Candidate actions, scored actions, the shared scoring context and the
evaluator interface. One evaluator per action kind computes base tactical
utility; the UtilityScorer layers personality and goal synergy on top.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from ..influence_map import InfluenceMap
from ..models import (
    ActionKind, AssetDefinition, Faction, FactionAsset,
    StrategicIntent, WorldState,
)
from ..threat_assessment import SectorThreatOverview

logger = logging.getLogger(__name__)


@dataclass
class CandidateAction:
    """
    A legal action a faction could take this turn.

    Expand and defend actions have no acting asset; acting_asset_id is ''.
    """
    kind: ActionKind
    acting_asset_id: str
    acting_asset_name: str
    source_location: str
    description: str
    target_location: Optional[str] = None
    target_faction_id: Optional[str] = None
    target_asset_id: Optional[str] = None
    target_asset_name: Optional[str] = None


@dataclass
class ScoredAction:
    """
    A candidate with its utility breakdown.

    score = max(0, base*bw + tag*tw + goal*gw)
    """
    action: CandidateAction
    score: float = 0.0
    base_utility: float = 0.0
    tag_modifier: float = 0.0
    goal_synergy: float = 0.0
    reasoning: List[str] = field(default_factory=list)
    order: int = 0  # generation order, used for stable tie-breaking

    def add_reasoning(self, reason: str, score_delta: float = 0.0):
        """Add reasoning with optional score adjustment (score stays >= 0)"""
        if score_delta != 0:
            self.reasoning.append(f"{reason} ({score_delta:+.1f})")
            self.score = max(0.0, self.score + score_delta)
        else:
            self.reasoning.append(reason)

    @property
    def kind(self) -> ActionKind:
        return self.action.kind

    def __repr__(self):
        return f"ScoredAction({self.action.kind.value}, score={self.score:.1f}, {self.action.description})"


@dataclass
class EnemyPresence:
    faction: Faction
    asset: FactionAsset
    definition: Optional[AssetDefinition]


@dataclass
class ScoringContext:
    """Everything an evaluator reads. Built once per faction-turn."""
    faction: Faction
    world: WorldState
    catalog: object
    influence_map: InfluenceMap
    threat_overview: SectorThreatOverview
    intent: StrategicIntent
    visible_enemies: Dict[str, List[EnemyPresence]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.visible_enemies:
            self.visible_enemies = index_visible_enemies(self.faction, self.world, self.catalog)

    def enemies_at(self, system_id: Optional[str]) -> List[EnemyPresence]:
        if system_id is None:
            return []
        return self.visible_enemies.get(system_id, [])

    def own_asset(self, asset_id: str) -> Optional[FactionAsset]:
        return self.faction.get_asset(asset_id)

    def danger_at(self, system_id: Optional[str]) -> Optional[float]:
        if system_id is None:
            return None
        return self.threat_overview.danger_at(system_id)

    def find_enemy_asset(self, faction_id: Optional[str], asset_id: Optional[str]) -> Optional[Tuple[Faction, FactionAsset]]:
        rival = self.world.get_faction(faction_id) if faction_id else None
        if rival is None or asset_id is None:
            return None
        asset = rival.get_asset(asset_id)
        if asset is None:
            return None
        return rival, asset


def index_visible_enemies(faction: Faction, world: WorldState, catalog) -> Dict[str, List[EnemyPresence]]:
    """Non-stealthed rival assets grouped by location"""
    by_location: Dict[str, List[EnemyPresence]] = {}
    for rival in world.rivals_of(faction.id):
        for asset in rival.assets:
            if asset.stealthed:
                continue
            by_location.setdefault(asset.location, []).append(
                EnemyPresence(faction=rival, asset=asset, definition=catalog.get(asset.definition_id)))
    return by_location


class ActionEvaluator(ABC):
    """
    Base class for base-utility evaluators.

    Each evaluator handles one action kind and returns the kind-specific
    tactical utility with its reasons. Results are clamped at zero by the caller.
    """

    kind: ActionKind

    def __init__(self, name: str):
        self.name = name
        self.enabled = True
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def can_evaluate(self, action: CandidateAction) -> bool:
        return self.enabled and action.kind == self.kind

    @abstractmethod
    def evaluate(self, action: CandidateAction, context: ScoringContext) -> Tuple[float, List[str]]:
        """
        Score one candidate.

        Returns:
            (base utility, reasons)
        """
        pass

    def log_evaluation(self, scored: ScoredAction):
        reasons = " | ".join(scored.reasoning)
        self.logger.debug(f"  [{self.name}] {scored.action.description}: {scored.score:.1f} - {reasons}")
