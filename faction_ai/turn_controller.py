"""
Faction Turn Controller

Orchestrates one AI faction's turn through fixed phases:
1. Analysis - influence map and sector threat overview
2. Goal - keep or replace the faction goal, derive the strategic intent
3. Economy - repair reserve and purchase recommendation
4. Scoring - generate, score and difficulty-scale candidate actions
5. Planning - reuse or regenerate the multi-turn strategic plan
6. Executing - paced application of the queue through a MutationSink

Deciding is a pure read over a world snapshot. Only execute_queue touches
state, and only through the sink it is handed.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Union

import numpy as np

from config import config as runtime_config
from . import decision_logger
from .action_generator import generate_all_actions
from .asset_catalog import get_asset_catalog
from .combat import CombatOddsOracle, resolve_attack
from .difficulty import DifficultyAdjustedResult, apply_difficulty_scaling
from .economy import EconomicPlan, EconomyActionType, generate_economic_plan, get_economy_action
from .errors import TurnCancelled, UnknownFactionError
from .evaluators import ScoredAction, ScoringContext, UtilityScorer
from .goal_selection import GoalEvaluation, create_goal_instance, evaluate_goals
from .influence_map import InfluenceMap, calculate_influence_map
from .models import (
    ActionKind, BASE_OF_INFLUENCE_ID, Difficulty, Faction, FactionAsset, Goal, StrategicIntent, WorldState,
)
from .movement import RouteMovementOracle
from .randomness import IdFactory, default_id_factory, make_rng
from .strategic_planner import StrategicPlan, evaluate_plan, generate_strategic_plan, should_replan
from .strategy_config import get_config
from .threat_assessment import SectorThreatOverview, generate_sector_threat_overview

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

BASE_ACTION_DELAY = 0.75
DELAY_VARIANCE = 0.25
MIN_ACTION_DELAY = 0.2
MAX_ACTIONS_PER_TURN = 10
REPAIR_CONFIDENCE = 90.0
PURCHASE_CONFIDENCE = 80.0


@dataclass
class ControllerConfig:
    base_action_delay: float = BASE_ACTION_DELAY
    delay_variance: float = DELAY_VARIANCE
    min_action_delay: float = MIN_ACTION_DELAY
    max_actions_per_turn: int = MAX_ACTIONS_PER_TURN
    use_strategic_planner: bool = True
    decision_log_enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ControllerConfig":
        return cls(
            base_action_delay=data.get('base_action_delay', runtime_config.ACTION_DELAY),
            delay_variance=data.get('delay_variance', DELAY_VARIANCE),
            min_action_delay=data.get('min_action_delay', MIN_ACTION_DELAY),
            max_actions_per_turn=data.get('max_actions_per_turn', MAX_ACTIONS_PER_TURN),
            use_strategic_planner=data.get('use_strategic_planner', True),
            decision_log_enabled=data.get('decision_log_enabled', False),
        )


def get_controller_config() -> ControllerConfig:
    return ControllerConfig.from_dict(get_config().get_section('controller'))


# =============================================================================
# PROGRESS STREAM
# =============================================================================

class TurnPhase(Enum):
    IDLE = "idle"
    ANALYSIS = "analysis"
    GOAL = "goal"
    ECONOMY = "economy"
    SCORING = "scoring"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETE = "complete"


PHASE_PERCENT = {
    TurnPhase.IDLE: 0.0,
    TurnPhase.ANALYSIS: 10.0,
    TurnPhase.GOAL: 25.0,
    TurnPhase.ECONOMY: 40.0,
    TurnPhase.SCORING: 60.0,
    TurnPhase.PLANNING: 80.0,
    TurnPhase.COMPLETE: 100.0,
}


@dataclass
class TurnStatus:
    faction_id: str
    faction_name: str
    phase: TurnPhase = TurnPhase.IDLE
    percent: float = 0.0
    current_action: Optional[str] = None
    actions_completed: int = 0
    total_actions: int = 0
    is_complete: bool = False
    error: Optional[str] = None


StatusCallback = Callable[[TurnStatus], None]


class ProgressStream:
    """
    Fan-out of TurnStatus updates to presentation subscribers.

    Subscribers are presentation only; one that raises is logged and skipped.
    """

    def __init__(self):
        self._subscribers: List[StatusCallback] = []
        self.history: List[TurnStatus] = []

    def subscribe(self, callback: StatusCallback):
        self._subscribers.append(callback)

    def unsubscribe(self, callback: StatusCallback):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def latest(self) -> Optional[TurnStatus]:
        return self.history[-1] if self.history else None

    def publish(self, status: TurnStatus):
        self.history.append(status)
        for callback in list(self._subscribers):
            try:
                callback(status)
            except Exception as e:
                logger.warning(f"⚠️ Progress subscriber failed: {e}", exc_info=True)


# =============================================================================
# ACTION QUEUE
# =============================================================================

class QueuedActionKind(Enum):
    MOVE = "move"
    ATTACK = "attack"
    EXPAND = "expand"
    DEFEND = "defend"
    REPAIR = "repair"
    REPAIR_FACTION = "repair_faction"
    PURCHASE = "purchase"


@dataclass
class QueuedAction:
    """One intent the faction will carry out this turn"""
    id: str
    kind: QueuedActionKind
    description: str
    confidence: float  # 0-100
    acting_asset_id: Optional[str] = None
    target: Optional[str] = None  # asset id, system id or definition id depending on kind
    target_faction_id: Optional[str] = None
    target_asset_id: Optional[str] = None
    location: Optional[str] = None
    definition_id: Optional[str] = None
    amount: int = 0  # HP healed
    cost: int = 0
    delay: float = 0.0
    score: float = 0.0


@dataclass
class ActionQueue:
    faction_id: str
    faction_name: str
    difficulty: Difficulty
    entries: List[QueuedAction] = field(default_factory=list)
    goal_change: Optional[Goal] = None
    reasoning: List[str] = field(default_factory=list)

    @property
    def is_idle(self) -> bool:
        """No action this turn. A normal outcome, not an error."""
        return not self.entries

    def __iter__(self) -> Iterator[QueuedAction]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class TurnDecision:
    """Everything produced while deciding one faction's turn"""
    faction: Faction
    difficulty: Difficulty
    influence_map: InfluenceMap
    threat_overview: SectorThreatOverview
    goal_evaluation: GoalEvaluation
    intent: StrategicIntent
    economy: EconomicPlan
    scoring: DifficultyAdjustedResult
    queue: ActionQueue
    plan: Optional[StrategicPlan] = None
    selected_actions: List[ScoredAction] = field(default_factory=list)


@dataclass
class ExecutionReport:
    faction_id: str
    executed: int = 0
    failed: int = 0
    cancelled: bool = False


# =============================================================================
# MUTATION SINK
# =============================================================================

class MutationSink(ABC):
    """
    Applies a faction's intents to the world.

    The controller never mutates state itself; it emits intents to a sink.
    """

    @abstractmethod
    def apply_move(self, faction_id: str, asset_id: str, destination: str):
        pass

    @abstractmethod
    def apply_attack(self, faction_id: str, asset_id: str, target_faction_id: str, target_asset_id: str):
        pass

    @abstractmethod
    def apply_damage(self, faction_id: str, asset_id: str, damage: int):
        pass

    @abstractmethod
    def apply_purchase(self, faction_id: str, definition_id: str, location: str):
        pass

    @abstractmethod
    def apply_repair(self, faction_id: str, asset_id: str, hp: int, cost: int):
        pass

    @abstractmethod
    def apply_faction_repair(self, faction_id: str, hp: int, cost: int):
        pass

    @abstractmethod
    def apply_expand(self, faction_id: str, location: str):
        pass

    @abstractmethod
    def set_goal(self, faction_id: str, goal: Goal):
        pass


class WorldStateSink(MutationSink):
    """In-memory sink that edits a WorldState directly"""

    def __init__(self, world: WorldState, catalog=None, rng: Optional[np.random.Generator] = None,
                 id_factory: IdFactory = default_id_factory):
        self.world = world
        self.catalog = catalog or get_asset_catalog()
        self.rng = rng or make_rng()
        self.id_factory = id_factory

    def _faction(self, faction_id: str) -> Faction:
        faction = self.world.get_faction(faction_id)
        if faction is None:
            raise UnknownFactionError(faction_id)
        return faction

    def _asset(self, faction: Faction, asset_id: str) -> FactionAsset:
        asset = faction.get_asset(asset_id)
        if asset is None:
            raise ValueError(f"{faction.name} has no asset {asset_id}")
        return asset

    def apply_move(self, faction_id: str, asset_id: str, destination: str):
        asset = self._asset(self._faction(faction_id), asset_id)
        asset.location = destination

    def apply_attack(self, faction_id: str, asset_id: str, target_faction_id: str, target_asset_id: str):
        attacker = self._faction(faction_id)
        defender = self._faction(target_faction_id)
        attacking_asset = self._asset(attacker, asset_id)
        target_asset = self._asset(defender, target_asset_id)
        attacker_def = self.catalog.get(attacking_asset.definition_id)
        defender_def = self.catalog.get(target_asset.definition_id)
        if attacker_def is None or defender_def is None:
            raise ValueError("Unknown asset definition in attack")

        result = resolve_attack(attacker, attacker_def, defender, defender_def, self.rng)
        if result.damage_to_defender:
            self.apply_damage(target_faction_id, target_asset_id, result.damage_to_defender)
        if result.damage_to_attacker:
            self.apply_damage(faction_id, asset_id, result.damage_to_attacker)

    def apply_damage(self, faction_id: str, asset_id: str, damage: int):
        faction = self._faction(faction_id)
        asset = self._asset(faction, asset_id)
        asset.hp -= damage
        if asset.hp <= 0:
            faction.assets.remove(asset)
            logger.info(f"💥 {faction.name} lost asset {asset_id}")

    def apply_purchase(self, faction_id: str, definition_id: str, location: str):
        faction = self._faction(faction_id)
        definition = self.catalog.get(definition_id)
        if definition is None:
            raise ValueError(f"Unknown asset definition {definition_id}")
        faction.fac_creds -= definition.cost
        faction.assets.append(FactionAsset(
            id=self.id_factory(),
            definition_id=definition_id,
            location=location,
            hp=definition.hp,
            max_hp=definition.hp,
            purchased_turn=self.world.turn,
        ))

    def apply_repair(self, faction_id: str, asset_id: str, hp: int, cost: int):
        faction = self._faction(faction_id)
        asset = self._asset(faction, asset_id)
        asset.hp = min(asset.max_hp, asset.hp + hp)
        faction.fac_creds -= cost

    def apply_faction_repair(self, faction_id: str, hp: int, cost: int):
        faction = self._faction(faction_id)
        attrs = faction.attributes
        attrs.hp = min(attrs.max_hp, attrs.hp + hp)
        faction.fac_creds -= cost

    def apply_expand(self, faction_id: str, location: str):
        """New base with HP equal to the FacCreds spent, capped at the faction's max HP"""
        faction = self._faction(faction_id)
        hp = min(faction.funds, faction.attributes.max_hp)
        if hp <= 0:
            logger.warning(f"⚠️ {faction.name} cannot afford to expand at {location}")
            return
        faction.fac_creds -= hp
        faction.assets.append(FactionAsset(
            id=self.id_factory(),
            definition_id=BASE_OF_INFLUENCE_ID,
            location=location,
            hp=hp,
            max_hp=faction.attributes.max_hp,
            purchased_turn=self.world.turn,
        ))

    def set_goal(self, faction_id: str, goal: Goal):
        self._faction(faction_id).goal = goal


# =============================================================================
# FACTION SELECTION
# =============================================================================

def is_ai_controlled(faction: Faction, player_faction_id: Optional[str] = None) -> bool:
    """With a player faction set, every other faction is AI; otherwise the faction's own flag decides."""
    if player_faction_id:
        return faction.id != player_faction_id
    return faction.ai_controlled


def ai_factions(factions: List[Faction], player_faction_id: Optional[str] = None) -> List[Faction]:
    return [f for f in factions if is_ai_controlled(f, player_faction_id)]


# =============================================================================
# CONTROLLER
# =============================================================================

class FactionTurnController:
    """
    Decides and executes AI faction turns.

    Usage:
        controller = FactionTurnController(world)
        queue = controller.decide_turn("red", "hard")
        controller.execute_queue(queue, WorldStateSink(world))
    """

    def __init__(self, world: WorldState, catalog=None, config: Optional[ControllerConfig] = None,
                 scorer: Optional[UtilityScorer] = None, rng: Optional[np.random.Generator] = None,
                 progress: Optional[ProgressStream] = None, id_factory: IdFactory = default_id_factory,
                 odds_oracle: Optional[CombatOddsOracle] = None):
        self.world = world
        self.catalog = catalog or get_asset_catalog()
        self.config = config or get_controller_config()
        self.scorer = scorer or UtilityScorer()
        self.rng = rng if rng is not None else make_rng(runtime_config.SEED)
        self.progress = progress or ProgressStream()
        self.id_factory = id_factory
        self.odds_oracle = odds_oracle or CombatOddsOracle()
        self.plans: Dict[str, StrategicPlan] = {}
        self.last_decision: Optional[TurnDecision] = None

    # -------------------------------------------------------------------------
    # Public surface
    # -------------------------------------------------------------------------

    def decide_turn(self, faction: Union[Faction, str], difficulty=None) -> ActionQueue:
        """Run the decision phases for one faction and return its action queue."""
        return self.plan_turn(faction, difficulty).queue

    def plan_strategy(self, faction: Union[Faction, str], horizon: Optional[int] = None,
                      difficulty=None) -> StrategicPlan:
        """Generate a fresh multi-turn plan and cache it for the faction."""
        faction = self._resolve_faction(faction, self.world)
        level = self._level(difficulty)
        goal_eval = evaluate_goals(faction, self.world)
        plan = generate_strategic_plan(faction, self.world, self.catalog, goal_eval.intent, level,
                                       horizon=horizon, id_factory=self.id_factory)
        self.plans[faction.id] = plan
        return plan

    def plan_turn(self, faction: Union[Faction, str], difficulty=None,
                  world: Optional[WorldState] = None) -> TurnDecision:
        world = world or self.world
        faction = self._resolve_faction(faction, world)
        level = self._level(difficulty)

        try:
            decision = self._decide(faction, world, level)
        except Exception as e:
            logger.error(f"❌ Turn decision failed for {faction.name}: {e}", exc_info=True)
            self.progress.publish(TurnStatus(faction.id, faction.name, TurnPhase.COMPLETE,
                                             percent=100.0, is_complete=True, error=str(e)))
            raise

        self.last_decision = decision
        self.progress.publish(TurnStatus(faction.id, faction.name, TurnPhase.COMPLETE, percent=100.0,
                                         total_actions=len(decision.queue), is_complete=True))
        if self.config.decision_log_enabled:
            decision_logger.log_decision(faction, level, decision.intent, decision.queue,
                                         decision.queue.reasoning, turn=world.turn)
        return decision

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _publish_phase(self, faction: Faction, phase: TurnPhase):
        logger.debug(f"🔄 {faction.name}: {phase.value}")
        self.progress.publish(TurnStatus(faction.id, faction.name, phase, percent=PHASE_PERCENT[phase]))

    def _decide(self, faction: Faction, world: WorldState, level: Difficulty) -> TurnDecision:
        reasoning: List[str] = []

        # Analysis
        self._publish_phase(faction, TurnPhase.ANALYSIS)
        influence_map = calculate_influence_map(faction.id, world, self.catalog)
        threat_overview = generate_sector_threat_overview(faction.id, world, self.catalog)
        reasoning.append(f"Analysis: Threat level {threat_overview.overall_threat_level:.0f}%")

        # Goal
        self._publish_phase(faction, TurnPhase.GOAL)
        goal_eval = evaluate_goals(faction, world)
        intent = goal_eval.intent
        goal_change = None
        if goal_eval.should_change and goal_eval.recommended_goal is not None:
            goal_change = create_goal_instance(goal_eval.recommended_goal, faction, self.id_factory)
            reasoning.append(f"Goal: Changed to {goal_change.goal_type.value} ({goal_eval.change_reason})")
            logger.info(f"🎯 {faction.name} adopts goal: {goal_change.description}")
        else:
            current = faction.goal.goal_type.value if faction.goal else "none"
            reasoning.append(f"Goal: Maintaining {current}")
        reasoning.append(f"Intent: {intent.primary_focus.value} focus")

        # Later phases read the goal the faction is about to pursue
        pursuing = replace(faction, goal=goal_change) if goal_change else faction

        # Economy
        self._publish_phase(faction, TurnPhase.ECONOMY)
        economy = generate_economic_plan(pursuing, world, threat_overview, intent, self.catalog)
        reasoning.append(f"Economy: {economy.reasoning}")

        # Scoring
        self._publish_phase(faction, TurnPhase.SCORING)
        oracle = RouteMovementOracle(world.systems)
        candidates = generate_all_actions(pursuing, world, self.catalog, oracle)
        context = ScoringContext(
            faction=pursuing,
            world=world,
            catalog=self.catalog,
            influence_map=influence_map,
            threat_overview=threat_overview,
            intent=intent,
        )
        result = self.scorer.score_all(candidates, context)
        scoring = apply_difficulty_scaling(result, pursuing, world, self.catalog, level,
                                           rng=self.rng, oracle=self.odds_oracle)
        reasoning.append(f"Scoring: {result.reasoning}. {scoring.reasoning}")

        # Planning
        plan = None
        if self.config.use_strategic_planner:
            self._publish_phase(faction, TurnPhase.PLANNING)
            plan = self._current_plan(pursuing, world, intent, level)
            reasoning.append(f"Strategy: {plan.summary}")
            reasoning.append(f"Confidence: {plan.overall_confidence:.0f}%")

        queue = ActionQueue(faction_id=faction.id, faction_name=faction.name, difficulty=level,
                            goal_change=goal_change, reasoning=reasoning)
        queue.entries.extend(self._economy_entries(pursuing, economy))
        selected = self._select_scored(scoring)
        for scored in selected:
            if len(queue.entries) >= self.config.max_actions_per_turn:
                break
            queue.entries.append(self._queued_from_scored(scored, pursuing, world))

        if queue.is_idle:
            logger.info(f"⚠️ {faction.name} has no viable action this turn")
        else:
            logger.info(f"✅ {faction.name} queued {len(queue)} actions "
                        f"({', '.join(e.kind.value for e in queue)})")

        return TurnDecision(
            faction=faction,
            difficulty=level,
            influence_map=influence_map,
            threat_overview=threat_overview,
            goal_evaluation=goal_eval,
            intent=intent,
            economy=economy,
            scoring=scoring,
            queue=queue,
            plan=plan,
            selected_actions=selected,
        )

    def _current_plan(self, faction: Faction, world: WorldState, intent: StrategicIntent,
                      level: Difficulty) -> StrategicPlan:
        existing = self.plans.get(faction.id)
        if existing is not None:
            evaluation = evaluate_plan(existing, world)
            if not should_replan(existing, evaluation, world.turn):
                logger.debug(f"📋 {faction.name}: continuing plan {existing.id}")
                return existing
            logger.info(f"📋 {faction.name}: replanning ({evaluation.reasoning})")

        plan = generate_strategic_plan(faction, world, self.catalog, intent, level, id_factory=self.id_factory)
        self.plans[faction.id] = plan
        return plan

    # -------------------------------------------------------------------------
    # Queue building
    # -------------------------------------------------------------------------

    def _delay(self, kind: QueuedActionKind) -> float:
        cfg = self.config
        variance = float(self.rng.uniform(-cfg.delay_variance, cfg.delay_variance)) if cfg.delay_variance > 0 else 0.0
        delay = max(cfg.min_action_delay, cfg.base_action_delay + variance)
        # Passive actions need less screen time
        return delay / 2 if kind == QueuedActionKind.DEFEND else delay

    def _economy_entries(self, faction: Faction, plan: EconomicPlan) -> List[QueuedAction]:
        action = get_economy_action(plan)

        if action.action == EconomyActionType.REPAIR and action.repair is not None:
            repair = action.repair
            return [QueuedAction(
                id=f"repair-{repair.asset_id}",
                kind=QueuedActionKind.REPAIR,
                description=f"Repair {repair.asset_name}",
                confidence=REPAIR_CONFIDENCE,
                acting_asset_id=repair.asset_id,
                target=repair.asset_id,
                location=repair.location,
                amount=repair.damage_amount,
                cost=repair.repair_cost,
                delay=self._delay(QueuedActionKind.REPAIR),
            )]

        if action.action == EconomyActionType.REPAIR_FACTION and plan.faction_repair is not None:
            heal = plan.faction_repair
            return [QueuedAction(
                id=f"repair-faction-{faction.id}",
                kind=QueuedActionKind.REPAIR_FACTION,
                description=f"Repair {faction.name} (+{heal.heal_amount} HP)",
                confidence=REPAIR_CONFIDENCE,
                target=faction.id,
                amount=heal.heal_amount,
                cost=heal.cost,
                delay=self._delay(QueuedActionKind.REPAIR_FACTION),
            )]

        if action.action == EconomyActionType.PURCHASE and action.purchase is not None:
            purchase = action.purchase
            return [QueuedAction(
                id=f"purchase-{purchase.definition.id}",
                kind=QueuedActionKind.PURCHASE,
                description=f"Purchase {purchase.definition.name}",
                confidence=PURCHASE_CONFIDENCE,
                target=purchase.definition.id,
                location=purchase.location,
                definition_id=purchase.definition.id,
                cost=purchase.cost,
                delay=self._delay(QueuedActionKind.PURCHASE),
                score=purchase.score,
            )]

        return []

    def _select_scored(self, scoring: DifficultyAdjustedResult) -> List[ScoredAction]:
        """
        One action kind per turn: the best action's kind.

        Move and attack take the best option for each acting asset; expand and
        defend are single faction-level actions. A move for any asset other
        than the leading one must outscore that asset staying put.
        """
        if scoring.best_action is None:
            return []
        kind = scoring.best_action.kind
        options = scoring.actions_of_kind(kind)
        if kind in (ActionKind.EXPAND, ActionKind.DEFEND):
            return options[:1]

        selected = []
        used_assets = set()
        for scored in options:
            asset_id = scored.action.acting_asset_id
            if asset_id in used_assets:
                continue
            used_assets.add(asset_id)
            if kind == ActionKind.MOVE and selected and scored.score <= self._stay_score(scored, scoring):
                logger.debug(f"Keeping {scored.action.acting_asset_name} in place: "
                             f"move scores {scored.score:.1f}")
                continue
            selected.append(scored)
        return selected

    @staticmethod
    def _stay_score(move: ScoredAction, scoring: DifficultyAdjustedResult) -> float:
        """Best score the moving asset gets by staying: its own attacks or defending where it is"""
        best = 0.0
        for scored in scoring.adjusted_actions:
            action = scored.action
            if action.kind == ActionKind.ATTACK and action.acting_asset_id == move.action.acting_asset_id:
                best = max(best, scored.score)
            elif action.kind == ActionKind.DEFEND and action.source_location == move.action.source_location:
                best = max(best, scored.score)
        return best

    def _attack_confidence(self, scored: ScoredAction, faction: Faction, world: WorldState) -> float:
        action = scored.action
        asset = faction.get_asset(action.acting_asset_id)
        definition = self.catalog.get(asset.definition_id) if asset else None
        target_faction = world.get_faction(action.target_faction_id) if action.target_faction_id else None
        if definition is None or definition.attack is None or target_faction is None:
            return 0.0
        odds = self.odds_oracle.attack_odds(
            faction.attributes.rating(definition.attack.attacker_attribute),
            target_faction.attributes.rating(definition.attack.defender_attribute),
        )
        return odds * 100

    def _queued_from_scored(self, scored: ScoredAction, faction: Faction, world: WorldState) -> QueuedAction:
        action = scored.action
        kind = QueuedActionKind(action.kind.value)

        if kind == QueuedActionKind.ATTACK:
            confidence = self._attack_confidence(scored, faction, world)
            target = action.target_asset_id
            entry_id = f"attack-{action.acting_asset_id}-{action.target_asset_id}"
        elif kind == QueuedActionKind.DEFEND:
            confidence = max(0.0, min(100.0, scored.score))
            target = action.source_location
            entry_id = f"defend-{action.source_location}"
        elif kind == QueuedActionKind.EXPAND:
            confidence = max(0.0, min(100.0, scored.score))
            target = action.target_location
            entry_id = f"expand-{action.target_location}"
        else:
            confidence = max(0.0, min(100.0, scored.score))
            target = action.target_location
            entry_id = f"move-{action.acting_asset_id}-{action.target_location}"

        return QueuedAction(
            id=entry_id,
            kind=kind,
            description=action.description,
            confidence=confidence,
            acting_asset_id=action.acting_asset_id or None,
            target=target,
            target_faction_id=action.target_faction_id,
            target_asset_id=action.target_asset_id,
            location=action.target_location or action.source_location,
            delay=self._delay(kind),
            score=scored.score,
        )

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _apply(self, queue: ActionQueue, entry: QueuedAction, sink: MutationSink):
        faction_id = queue.faction_id
        if entry.kind == QueuedActionKind.MOVE:
            sink.apply_move(faction_id, entry.acting_asset_id, entry.location)
        elif entry.kind == QueuedActionKind.ATTACK:
            sink.apply_attack(faction_id, entry.acting_asset_id, entry.target_faction_id, entry.target_asset_id)
        elif entry.kind == QueuedActionKind.EXPAND:
            sink.apply_expand(faction_id, entry.location)
        elif entry.kind == QueuedActionKind.REPAIR:
            sink.apply_repair(faction_id, entry.acting_asset_id, entry.amount, entry.cost)
        elif entry.kind == QueuedActionKind.REPAIR_FACTION:
            sink.apply_faction_repair(faction_id, entry.amount, entry.cost)
        elif entry.kind == QueuedActionKind.PURCHASE:
            sink.apply_purchase(faction_id, entry.definition_id, entry.location)
        # Defending is implicit; nothing to apply

    def execute_queue(self, queue: ActionQueue, sink: MutationSink,
                      cancel_event: Optional[threading.Event] = None) -> ExecutionReport:
        """
        Apply a queue in order with presentation pacing.

        A failing action is logged and skipped. Setting cancel_event stops the
        remaining actions; already applied ones stay applied.
        """
        cancel_event = cancel_event or threading.Event()
        report = ExecutionReport(faction_id=queue.faction_id)
        total = len(queue)

        def status(percent, current=None, done=0, complete=False, error=None):
            self.progress.publish(TurnStatus(queue.faction_id, queue.faction_name,
                                             TurnPhase.COMPLETE if complete else TurnPhase.EXECUTING,
                                             percent=percent, current_action=current,
                                             actions_completed=done, total_actions=total,
                                             is_complete=complete, error=error))

        if queue.goal_change is not None:
            sink.set_goal(queue.faction_id, queue.goal_change)

        status(0.0)
        try:
            for i, entry in enumerate(queue):
                status((i + 1) / total * 100, entry.description, i)
                if cancel_event.wait(entry.delay) or cancel_event.is_set():
                    raise TurnCancelled(f"{queue.faction_name} turn cancelled after {i} actions")
                try:
                    self._apply(queue, entry, sink)
                    report.executed += 1
                    logger.info(f"✅ {queue.faction_name}: {entry.description}")
                except Exception as e:
                    report.failed += 1
                    logger.error(f"❌ {queue.faction_name}: failed to apply {entry.description}: {e}",
                                 exc_info=True)
        except TurnCancelled as e:
            report.cancelled = True
            logger.info(f"🛑 {e}")
            status(100.0, done=report.executed, complete=True, error="cancelled")
            return report

        status(100.0, done=report.executed, complete=True)
        return report

    def run_turn_cycle(self, difficulty=None, sink: Optional[MutationSink] = None,
                       player_faction_id: Optional[str] = None,
                       cancel_event: Optional[threading.Event] = None) -> Dict[str, ActionQueue]:
        """
        One full turn: every AI faction in world order, each deciding on a
        fresh snapshot and applying its actions before the next one decides.
        Advances the world turn counter at the end.
        """
        sink = sink or WorldStateSink(self.world, self.catalog, self.rng, self.id_factory)
        queues: Dict[str, ActionQueue] = {}
        order = [f.id for f in ai_factions(self.world.factions, player_faction_id)]

        for faction_id in order:
            if self.world.get_faction(faction_id) is None:
                continue  # eliminated earlier this turn
            snapshot = copy.deepcopy(self.world)
            decision = self.plan_turn(faction_id, difficulty, world=snapshot)
            queues[faction_id] = decision.queue
            report = self.execute_queue(decision.queue, sink, cancel_event)
            if report.cancelled:
                break

        self.world.turn += 1
        return queues

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve_faction(self, faction: Union[Faction, str], world: WorldState) -> Faction:
        faction_id = faction if isinstance(faction, str) else faction.id
        found = world.get_faction(faction_id)
        if found is None:
            raise UnknownFactionError(faction_id)
        return found

    def _level(self, difficulty) -> Difficulty:
        return Difficulty.parse(difficulty if difficulty is not None else runtime_config.DIFFICULTY)
