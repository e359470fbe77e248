"""
Strategic Planner

Multi-turn planning for AI factions:
- Objective identification (goal-derived primary, opportunistic secondaries)
- Goal-directed backward chaining into concrete actions
- Turn-by-turn packing against a projected FacCred ledger
- Contingencies for failed attacks, blocked moves and lost assets
- Plan evaluation and replanning

Plans are visible to players, so every step carries a readable description.
Planning is read-only over the world snapshot.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .economy import INCOME_GENERATING_ASSETS, calculate_repair_cost
from .goal_selection import strength
from .models import (
    AssetType, Difficulty, Faction, GoalType, StrategicIntent, WorldState,
)
from .movement import get_movement_ability, hex_distance
from .randomness import IdFactory, default_id_factory
from .strategy_config import get_config

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_HORIZON = 3
MAX_HORIZON = 5
MAX_ACTIONS_PER_TURN = 3
INCOME_PER_TURN = 2
COST_BUFFER = 6
REPLAN_AGE = 3
REPLAN_CONFIDENCE = 40.0
HORIZON_BY_DIFFICULTY = {'easy': 2, 'normal': 2, 'hard': 3, 'expert': 4}

MOVE_COST = 1
EXPAND_COST = 8
PURCHASE_FALLBACK_COST = 4
VULNERABLE_HP = 3
MAX_SECONDARY_OBJECTIVES = 3
SECONDARY_ACTIONS_PER_OBJECTIVE = 2


@dataclass
class PlannerConfig:
    default_horizon: int = DEFAULT_HORIZON
    max_horizon: int = MAX_HORIZON
    max_actions_per_turn: int = MAX_ACTIONS_PER_TURN
    income_per_turn: int = INCOME_PER_TURN
    cost_buffer: int = COST_BUFFER
    replan_age: int = REPLAN_AGE
    replan_confidence: float = REPLAN_CONFIDENCE
    horizon_by_difficulty: Dict[str, int] = field(default_factory=lambda: dict(HORIZON_BY_DIFFICULTY))

    @classmethod
    def from_dict(cls, data: dict) -> "PlannerConfig":
        horizons = dict(HORIZON_BY_DIFFICULTY)
        horizons.update(data.get('horizon_by_difficulty', {}))
        return cls(
            default_horizon=data.get('default_horizon', DEFAULT_HORIZON),
            max_horizon=data.get('max_horizon', MAX_HORIZON),
            max_actions_per_turn=data.get('max_actions_per_turn', MAX_ACTIONS_PER_TURN),
            income_per_turn=data.get('income_per_turn', INCOME_PER_TURN),
            cost_buffer=data.get('cost_buffer', COST_BUFFER),
            replan_age=data.get('replan_age', REPLAN_AGE),
            replan_confidence=data.get('replan_confidence', REPLAN_CONFIDENCE),
            horizon_by_difficulty=horizons,
        )

    def horizon_for(self, level) -> int:
        level = Difficulty.parse(level)
        horizon = self.horizon_by_difficulty.get(level.value, self.default_horizon)
        return max(1, min(self.max_horizon, horizon))


def get_planner_config() -> PlannerConfig:
    return PlannerConfig.from_dict(get_config().get_section('planner'))


# =============================================================================
# PLAN TYPES
# =============================================================================

class PlannedActionKind(Enum):
    MOVE = "move"
    ATTACK = "attack"
    EXPAND = "expand"
    DEFEND = "defend"
    PURCHASE = "purchase"
    REPAIR = "repair"
    SAVE = "save"


class ObjectiveType(Enum):
    DESTROY_ASSET = "destroy_asset"
    ELIMINATE_FACTION = "eliminate_faction"
    EXPAND_INFLUENCE = "expand_influence"
    ECONOMIC_GROWTH = "economic_growth"
    DEFENSIVE_POSTURE = "defensive_posture"
    BUILD_ARMY = "build_army"


PRIORITY_ORDER = {'primary': 0, 'secondary': 1, 'opportunistic': 2}


@dataclass
class PlannedAction:
    id: str
    kind: PlannedActionKind
    description: str
    priority: str  # critical / high / medium / low
    confidence: float  # 0-100
    expected_outcome: str
    cost: int = 0
    asset_id: Optional[str] = None
    asset_name: Optional[str] = None
    target_asset_id: Optional[str] = None
    target_asset_name: Optional[str] = None
    target_faction_id: Optional[str] = None
    target_faction_name: Optional[str] = None
    target_location: Optional[str] = None
    target_location_name: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    enables: List[str] = field(default_factory=list)


@dataclass
class StrategicObjective:
    id: str
    objective_type: ObjectiveType
    description: str
    priority: str  # primary / secondary / opportunistic
    progress: float = 0.0
    estimated_turns: int = 1
    required_steps: List[str] = field(default_factory=list)
    blockers: List[str] = field(default_factory=list)
    confidence: float = 0.0
    target_faction_id: Optional[str] = None
    target_faction_name: Optional[str] = None
    target_asset_id: Optional[str] = None
    target_asset_name: Optional[str] = None
    target_system_id: Optional[str] = None
    target_system_name: Optional[str] = None


@dataclass
class TurnPlan:
    turn: int  # 0 = this turn
    actions: List[PlannedAction] = field(default_factory=list)
    expected_funds: int = 0
    expected_funds_after: int = 0
    reasoning: str = ""


@dataclass
class PlanContingency:
    id: str
    triggered_by: str
    trigger_condition: str  # action_failed / enemy_moved / asset_destroyed
    description: str
    alternative_actions: List[PlannedAction] = field(default_factory=list)
    priority: int = 1


@dataclass
class PlannedExpense:
    turn: int
    amount: int
    purpose: str


@dataclass
class SavingGoal:
    target_amount: int
    target_turn: int
    purpose: str


@dataclass
class ResourceBudget:
    current_funds: int
    projected_income: List[int] = field(default_factory=list)
    planned_expenses: List[PlannedExpense] = field(default_factory=list)
    saving_goal: Optional[SavingGoal] = None


@dataclass
class IdentifiedThreat:
    description: str
    severity: str
    response: str


@dataclass
class IdentifiedOpportunity:
    description: str
    value: str
    action: str


@dataclass
class StrategicPlan:
    id: str
    faction_id: str
    faction_name: str
    created_at_turn: int
    last_updated_turn: int
    horizon: int
    overall_confidence: float
    primary_objective: StrategicObjective
    secondary_objectives: List[StrategicObjective] = field(default_factory=list)
    turn_plans: List[TurnPlan] = field(default_factory=list)
    contingencies: List[PlanContingency] = field(default_factory=list)
    budget: Optional[ResourceBudget] = None
    summary: str = ""
    detailed_reasoning: List[str] = field(default_factory=list)
    threats: List[IdentifiedThreat] = field(default_factory=list)
    opportunities: List[IdentifiedOpportunity] = field(default_factory=list)

    def all_actions(self) -> List[PlannedAction]:
        return [a for tp in self.turn_plans for a in tp.actions]

    def actions_for_turn(self, turn: int) -> List[PlannedAction]:
        for turn_plan in self.turn_plans:
            if turn_plan.turn == turn:
                return turn_plan.actions
        return []


@dataclass
class PlanEvaluation:
    plan_id: str
    faction_id: str
    on_track: bool
    progress_percent: float
    blockers: List[str] = field(default_factory=list)
    unexpected_events: List[str] = field(default_factory=list)
    recommendation: str = "continue"  # continue / adjust / replan
    reasoning: str = ""


# =============================================================================
# PLANNING CONTEXT
# =============================================================================

@dataclass
class AssetView:
    id: str
    definition_id: str
    name: str
    location: str
    hp: int
    max_hp: int
    cost: int = 0
    has_attack: bool = False
    has_mobility: bool = False
    is_base: bool = False


@dataclass
class EnemyView:
    id: str
    name: str
    homeworld: str
    strength: int
    assets: List[AssetView] = field(default_factory=list)


@dataclass
class SystemView:
    id: str
    name: str
    has_our_assets: bool
    has_enemy_assets: bool
    distance_from_homeworld: int


@dataclass
class PlanningContext:
    faction: Faction
    assets: List[AssetView]
    enemies: List[EnemyView]
    systems: List[SystemView]
    current_turn: int
    difficulty: Difficulty
    world: WorldState
    catalog: object

    def system_name(self, system_id: Optional[str]) -> str:
        if system_id is None:
            return "Unknown"
        system = self.world.get_system(system_id)
        return system.name if system else system_id

    def distance(self, a_id: str, b_id: str) -> int:
        if a_id == b_id:
            return 0
        a = self.world.get_system(a_id)
        b = self.world.get_system(b_id)
        if a is None or b is None:
            return MAX_HORIZON * 2
        return hex_distance(a, b)


def _is_mobile(definition) -> bool:
    return get_movement_ability(definition.id) is not None or definition.asset_type == AssetType.STARSHIP


def _asset_view(asset, catalog) -> AssetView:
    definition = catalog.get(asset.definition_id)
    return AssetView(
        id=asset.id,
        definition_id=asset.definition_id,
        name=definition.name if definition else "Unknown",
        location=asset.location,
        hp=asset.hp,
        max_hp=asset.max_hp,
        cost=definition.cost if definition else 0,
        has_attack=bool(definition and definition.attack),
        has_mobility=bool(definition and _is_mobile(definition)),
        is_base=asset.is_base,
    )


def build_planning_context(faction: Faction, world: WorldState, catalog, difficulty) -> PlanningContext:
    enemies = []
    for rival in world.rivals_of(faction.id):
        enemies.append(EnemyView(
            id=rival.id,
            name=rival.name,
            homeworld=rival.homeworld,
            strength=strength(rival),
            # Stealthed assets can't be planned against
            assets=[_asset_view(a, catalog) for a in rival.assets if not a.stealthed],
        ))

    homeworld = world.get_system(faction.homeworld)
    systems = []
    for system in world.systems:
        ours = any(a.location == system.id for a in faction.assets)
        theirs = any(a.location == system.id for e in enemies for a in e.assets)
        distance = hex_distance(homeworld, system) if homeworld else 0
        systems.append(SystemView(system.id, system.name, ours, theirs, distance))

    return PlanningContext(
        faction=faction,
        assets=[_asset_view(a, catalog) for a in faction.assets],
        enemies=enemies,
        systems=systems,
        current_turn=world.turn,
        difficulty=Difficulty.parse(difficulty),
        world=world,
        catalog=catalog,
    )


# =============================================================================
# OBJECTIVES
# =============================================================================

def _weakest_enemy(context: PlanningContext) -> Optional[EnemyView]:
    weakest = None
    for enemy in context.enemies:
        if weakest is None or enemy.strength < weakest.strength:
            weakest = enemy
    return weakest


def _softest_asset(enemy: EnemyView) -> Optional[AssetView]:
    softest = None
    for asset in enemy.assets:
        if softest is None or asset.hp < softest.hp:
            softest = asset
    return softest


def estimate_turns_to_destroy(context: PlanningContext, target: AssetView) -> int:
    attackers = [a for a in context.assets if a.has_attack]
    if not attackers:
        return 10
    if any(a.location == target.location for a in attackers):
        return math.ceil(target.hp / 4)
    if any(a.has_mobility for a in attackers):
        return 1 + math.ceil(target.hp / 4)
    return 5


def _goal_progress(faction: Faction) -> float:
    goal = faction.goal
    if goal is None or goal.progress.target <= 0:
        return 0.0
    return min(100.0, goal.progress.current / goal.progress.target * 100)


def objective_from_goal(context: PlanningContext) -> Optional[StrategicObjective]:
    goal = context.faction.goal
    if goal is None:
        return None
    goal_type = goal.goal_type

    if goal_type in (GoalType.MILITARY_CONQUEST, GoalType.BLOOD_THE_ENEMY):
        enemy = _weakest_enemy(context)
        if enemy is None:
            return None
        target = _softest_asset(enemy)
        remaining = max(0, goal.progress.target - goal.progress.current)
        return StrategicObjective(
            id=f"goal-{goal_type.name.lower()}",
            objective_type=ObjectiveType.DESTROY_ASSET,
            description=f"{goal_type.value}: Attack {enemy.name}",
            priority='primary',
            progress=_goal_progress(context.faction),
            estimated_turns=max(1, math.ceil(remaining / 2)),
            required_steps=['position_attackers', 'attack_enemies'],
            target_faction_id=enemy.id,
            target_faction_name=enemy.name,
            target_asset_id=target.id if target else None,
            target_asset_name=target.name if target else None,
            target_system_id=target.location if target else None,
        )

    if goal_type == GoalType.DESTROY_THE_FOE:
        enemy = _weakest_enemy(context)
        if enemy is None:
            return None
        target = _softest_asset(enemy)
        return StrategicObjective(
            id="goal-eliminate",
            objective_type=ObjectiveType.ELIMINATE_FACTION,
            description=f"Eliminate {enemy.name}",
            priority='primary',
            progress=max(0.0, 100.0 - len(enemy.assets) * 10),
            estimated_turns=max(1, len(enemy.assets) * 2),
            required_steps=['destroy_all_assets', 'destroy_base'],
            target_faction_id=enemy.id,
            target_faction_name=enemy.name,
            target_asset_id=target.id if target else None,
            target_asset_name=target.name if target else None,
            target_system_id=target.location if target else None,
        )

    if goal_type == GoalType.EXPAND_INFLUENCE:
        free = [s for s in context.systems if not s.has_our_assets and not s.has_enemy_assets]
        free.sort(key=lambda s: s.distance_from_homeworld)
        target = free[0] if free else None
        return StrategicObjective(
            id="goal-expand",
            objective_type=ObjectiveType.EXPAND_INFLUENCE,
            description="Establish new Base of Influence",
            priority='primary',
            progress=_goal_progress(context.faction),
            estimated_turns=3,
            required_steps=['move_to_system', 'build_base'],
            target_system_id=target.id if target else None,
            target_system_name=target.name if target else None,
        )

    return StrategicObjective(
        id=f"goal-{goal_type.name.lower()}",
        objective_type=ObjectiveType.BUILD_ARMY,
        description=goal.description,
        priority='primary',
        progress=_goal_progress(context.faction),
        estimated_turns=3,
        required_steps=['execute_goal'],
    )


def default_objective() -> StrategicObjective:
    return StrategicObjective(
        id="default-build",
        objective_type=ObjectiveType.BUILD_ARMY,
        description="Build military strength",
        priority='primary',
        estimated_turns=4,
        required_steps=['purchase_assets', 'position_forces'],
    )


def find_threatened_assets(context: PlanningContext) -> List[str]:
    enemy_locations = {a.location for e in context.enemies for a in e.assets if a.has_attack}
    return [a.id for a in context.assets if a.location in enemy_locations]


def identify_objectives(context: PlanningContext, intent: StrategicIntent):
    """
    Primary objective plus up to three secondaries.

    Returns:
        (primary, [secondary, ...])
    """
    objectives: List[StrategicObjective] = []

    from_goal = objective_from_goal(context)
    if from_goal is not None:
        objectives.append(from_goal)

    for enemy in context.enemies:
        for asset in enemy.assets:
            if asset.hp <= VULNERABLE_HP:
                objectives.append(StrategicObjective(
                    id=f"destroy-{asset.id}",
                    objective_type=ObjectiveType.DESTROY_ASSET,
                    description=f"Destroy {enemy.name}'s weakened {asset.name}",
                    priority='secondary' if asset.is_base else 'opportunistic',
                    estimated_turns=estimate_turns_to_destroy(context, asset),
                    required_steps=['position_attacker', 'attack'],
                    target_faction_id=enemy.id,
                    target_faction_name=enemy.name,
                    target_asset_id=asset.id,
                    target_asset_name=asset.name,
                    target_system_id=asset.location,
                ))

        for base in (a for a in enemy.assets if a.is_base):
            defenders = [a for a in enemy.assets if a.location == base.location and not a.is_base]
            if defenders or base.hp <= VULNERABLE_HP:
                continue
            objectives.append(StrategicObjective(
                id=f"destroy-base-{base.id}",
                objective_type=ObjectiveType.DESTROY_ASSET,
                description=f"Destroy {enemy.name}'s undefended Base of Influence",
                priority='secondary',
                estimated_turns=estimate_turns_to_destroy(context, base),
                required_steps=['position_attacker', 'attack_base'],
                target_faction_id=enemy.id,
                target_faction_name=enemy.name,
                target_asset_id=base.id,
                target_asset_name=base.name,
                target_system_id=base.location,
                target_system_name=context.system_name(base.location),
            ))

    if context.faction.fac_creds < 5:
        objectives.append(StrategicObjective(
            id="economic-growth",
            objective_type=ObjectiveType.ECONOMIC_GROWTH,
            description="Build economic capacity",
            priority='secondary',
            estimated_turns=3,
            required_steps=['save_faccreds', 'purchase_income_asset'],
        ))

    if find_threatened_assets(context):
        objectives.append(StrategicObjective(
            id="defensive-posture",
            objective_type=ObjectiveType.DEFENSIVE_POSTURE,
            description="Protect threatened assets",
            priority='primary' if intent.aggression < 40 else 'secondary',
            estimated_turns=2,
            required_steps=['reinforce_position', 'repair_damaged'],
        ))

    objectives.sort(key=lambda o: PRIORITY_ORDER[o.priority])
    primary = objectives[0] if objectives else default_objective()
    secondary = objectives[1:1 + MAX_SECONDARY_OBJECTIVES]
    return primary, secondary


# =============================================================================
# BACKWARD CHAINING
# =============================================================================

def calculate_attack_confidence(attacker_hp: int, target_hp: int) -> float:
    ratio = attacker_hp / max(1, target_hp)
    if ratio >= 2:
        return 85.0
    if ratio >= 1.5:
        return 75.0
    if ratio >= 1:
        return 60.0
    if ratio >= 0.5:
        return 40.0
    return 25.0


def _find_target(objective: StrategicObjective, context: PlanningContext) -> Optional[AssetView]:
    if not objective.target_faction_id or not objective.target_asset_id:
        return None
    for enemy in context.enemies:
        if enemy.id != objective.target_faction_id:
            continue
        for asset in enemy.assets:
            if asset.id == objective.target_asset_id:
                return asset
    return None


def _nearest(assets: List[AssetView], location: str, context: PlanningContext) -> Optional[AssetView]:
    best = None
    best_distance = None
    for asset in assets:
        distance = context.distance(asset.location, location)
        if best is None or distance < best_distance:
            best, best_distance = asset, distance
    return best


def _cheapest_purchase(context: PlanningContext, predicate):
    """Cheapest purchasable definition the faction has the rating for"""
    attrs = context.faction.attributes
    best = None
    for definition in context.catalog.purchasable():
        if attrs.rating(definition.category) < definition.required_rating or not predicate(definition):
            continue
        if best is None or definition.cost < best.cost:
            best = definition
    return best


def _plan_destroy(objective: StrategicObjective, context: PlanningContext) -> List[PlannedAction]:
    target = _find_target(objective, context)
    if target is None:
        return []

    faction_name = objective.target_faction_name
    attack_id = f"attack-{target.id}"
    here = [a for a in context.assets if a.has_attack and a.location == target.location]
    if here:
        attacker = here[0]
        return [PlannedAction(
            id=attack_id,
            kind=PlannedActionKind.ATTACK,
            description=f"Attack {faction_name}'s {target.name}",
            priority='high',
            confidence=calculate_attack_confidence(attacker.hp, target.hp),
            expected_outcome=f"Deal damage to {target.name}",
            asset_id=attacker.id,
            asset_name=attacker.name,
            target_asset_id=target.id,
            target_asset_name=target.name,
            target_faction_id=objective.target_faction_id,
            target_faction_name=faction_name,
            target_location=target.location,
        )]

    mover = _nearest([a for a in context.assets if a.has_attack and a.has_mobility], target.location, context)
    location_name = context.system_name(target.location)
    if mover is not None:
        move_id = f"move-{mover.id}-{target.location}"
        return [
            PlannedAction(
                id=move_id,
                kind=PlannedActionKind.MOVE,
                description=f"Move {mover.name} to {location_name}",
                priority='high',
                confidence=90.0,
                expected_outcome=f"Position for attack on {target.name}",
                cost=MOVE_COST,
                asset_id=mover.id,
                asset_name=mover.name,
                target_location=target.location,
                target_location_name=location_name,
                enables=[attack_id],
            ),
            PlannedAction(
                id=attack_id,
                kind=PlannedActionKind.ATTACK,
                description=f"Attack {faction_name}'s {target.name}",
                priority='high',
                confidence=calculate_attack_confidence(mover.hp, target.hp),
                expected_outcome=f"Deal damage to {target.name}",
                asset_id=mover.id,
                asset_name=mover.name,
                target_asset_id=target.id,
                target_asset_name=target.name,
                target_faction_id=objective.target_faction_id,
                target_faction_name=faction_name,
                target_location=target.location,
                depends_on=[move_id],
            ),
        ]

    definition = _cheapest_purchase(context, lambda d: d.attack is not None and _is_mobile(d))
    cost = definition.cost if definition else PURCHASE_FALLBACK_COST
    name = definition.name if definition else "mobile attack asset"
    return [PlannedAction(
        id="purchase-attacker",
        kind=PlannedActionKind.PURCHASE,
        description=f"Purchase {name}",
        priority='high',
        confidence=80.0 if context.faction.fac_creds >= cost else 40.0,
        expected_outcome="Gain attack capability",
        cost=cost,
        target_location=context.faction.homeworld,
        target_location_name=context.system_name(context.faction.homeworld),
        enables=[attack_id],
    )]


def _plan_expand(objective: StrategicObjective, context: PlanningContext) -> List[PlannedAction]:
    system_id = objective.target_system_id
    if system_id is None:
        return []
    name = context.system_name(system_id)
    expand_id = f"expand-{system_id}"
    actions = []

    if not any(a.location == system_id for a in context.assets):
        mover = _nearest([a for a in context.assets if a.has_mobility], system_id, context)
        if mover is None:
            return []
        move_id = f"move-{mover.id}-{system_id}"
        actions.append(PlannedAction(
            id=move_id,
            kind=PlannedActionKind.MOVE,
            description=f"Move {mover.name} to {name}",
            priority='high',
            confidence=85.0,
            expected_outcome=f"Establish presence in {name}",
            cost=MOVE_COST,
            asset_id=mover.id,
            asset_name=mover.name,
            target_location=system_id,
            target_location_name=name,
            enables=[expand_id],
        ))

    actions.append(PlannedAction(
        id=expand_id,
        kind=PlannedActionKind.EXPAND,
        description=f"Expand influence in {name}",
        priority='high',
        confidence=70.0 if context.faction.fac_creds >= EXPAND_COST else 30.0,
        expected_outcome=f"Establish Base of Influence in {name}",
        cost=EXPAND_COST,
        target_location=system_id,
        target_location_name=name,
        depends_on=[a.id for a in actions],
    ))
    return actions


def _plan_economic(context: PlanningContext) -> List[PlannedAction]:
    actions = [PlannedAction(
        id="save-for-income",
        kind=PlannedActionKind.SAVE,
        description="Save FacCreds for income asset",
        priority='medium',
        confidence=95.0,
        expected_outcome="Accumulate resources",
    )]
    definition = _cheapest_purchase(context, lambda d: d.id in INCOME_GENERATING_ASSETS)
    cost = definition.cost if definition else PURCHASE_FALLBACK_COST
    if context.faction.fac_creds >= cost:
        actions.append(PlannedAction(
            id="purchase-income",
            kind=PlannedActionKind.PURCHASE,
            description=f"Purchase {definition.name if definition else 'income-generating asset'}",
            priority='medium',
            confidence=75.0,
            expected_outcome="Increase FacCred income",
            cost=cost,
            target_location=context.faction.homeworld,
        ))
    return actions


def _plan_defensive(context: PlanningContext) -> List[PlannedAction]:
    attrs = context.faction.attributes
    healing = max(attrs.force, attrs.cunning, attrs.wealth)
    actions = []
    for damaged in [a for a in context.assets if a.hp < a.max_hp][:2]:
        actions.append(PlannedAction(
            id=f"repair-{damaged.id}",
            kind=PlannedActionKind.REPAIR,
            description=f"Repair {damaged.name}",
            priority='critical' if damaged.hp <= 2 else 'medium',
            confidence=90.0 if context.faction.fac_creds >= 2 else 50.0,
            expected_outcome=f"Restore {damaged.name} to full strength",
            cost=calculate_repair_cost(damaged.max_hp - damaged.hp, healing),
            asset_id=damaged.id,
            asset_name=damaged.name,
        ))
    return actions


def plan_backward_from_objective(objective: StrategicObjective, context: PlanningContext) -> List[PlannedAction]:
    """Prerequisite-first action chain for one objective"""
    kind = objective.objective_type
    if kind in (ObjectiveType.DESTROY_ASSET, ObjectiveType.ELIMINATE_FACTION):
        actions = _plan_destroy(objective, context)
    elif kind == ObjectiveType.EXPAND_INFLUENCE:
        actions = _plan_expand(objective, context)
    elif kind == ObjectiveType.ECONOMIC_GROWTH:
        actions = _plan_economic(context)
    elif kind == ObjectiveType.DEFENSIVE_POSTURE:
        actions = _plan_defensive(context)
    else:
        actions = [PlannedAction(
            id="consolidate",
            kind=PlannedActionKind.DEFEND,
            description="Consolidate position",
            priority='low',
            confidence=80.0,
            expected_outcome="Maintain current status",
        )]

    if actions:
        objective.confidence = sum(a.confidence for a in actions) / len(actions)
    else:
        objective.blockers.append("No viable action sequence")
    return actions


# =============================================================================
# TURN PACKING
# =============================================================================

def _turn_reasoning(actions: List[PlannedAction], turn: int) -> str:
    if not actions:
        return "Conserving resources this turn" if turn == 0 else "Building up for future actions"
    return f"Turn {turn}: " + ", ".join(a.description for a in actions)


def organize_turn_plans(actions: List[PlannedAction], starting_funds: int, horizon: int,
                        config: PlannerConfig) -> List[TurnPlan]:
    """
    Pack actions into turns in priority order.

    An action is placed only when every dependency landed in an earlier turn and
    its cost fits the funds projected for that turn. Income arrives between turns.
    """
    pending = list(actions)
    done_before: Set[str] = set()
    funds = starting_funds
    plans = []

    for turn in range(horizon):
        if not pending:
            break
        start_funds = funds
        placed = []
        for action in list(pending):
            if len(placed) >= config.max_actions_per_turn:
                break
            if any(dep not in done_before for dep in action.depends_on):
                continue
            if action.cost > funds:
                continue
            placed.append(action)
            funds -= action.cost
            pending.remove(action)

        done_before.update(a.id for a in placed)
        funds += config.income_per_turn

        if placed or turn == 0:
            plans.append(TurnPlan(
                turn=turn,
                actions=placed,
                expected_funds=start_funds,
                expected_funds_after=funds,
                reasoning=_turn_reasoning(placed, turn),
            ))

    return plans


# =============================================================================
# CONTINGENCIES / BUDGET / ANALYSIS
# =============================================================================

def generate_contingencies(turn_plans: List[TurnPlan], context: PlanningContext) -> List[PlanContingency]:
    contingencies = []
    homeworld = context.faction.homeworld

    for turn_plan in turn_plans:
        for action in turn_plan.actions:
            if action.kind == PlannedActionKind.ATTACK:
                contingencies.append(PlanContingency(
                    id=f"contingency-{action.id}-fail",
                    triggered_by=f"{action.description} fails",
                    trigger_condition="action_failed",
                    description="Attack failed - retreat and regroup",
                    alternative_actions=[
                        PlannedAction(
                            id=f"retreat-{action.asset_id}",
                            kind=PlannedActionKind.MOVE,
                            description=f"Retreat {action.asset_name} to safety",
                            priority='high',
                            confidence=80.0,
                            expected_outcome="Preserve damaged asset",
                            cost=MOVE_COST,
                            asset_id=action.asset_id,
                            asset_name=action.asset_name,
                            target_location=homeworld,
                            target_location_name=context.system_name(homeworld),
                        ),
                        PlannedAction(
                            id=f"repair-{action.asset_id}",
                            kind=PlannedActionKind.REPAIR,
                            description=f"Repair {action.asset_name}",
                            priority='high',
                            confidence=70.0,
                            expected_outcome="Restore fighting capability",
                            cost=2,
                            asset_id=action.asset_id,
                            asset_name=action.asset_name,
                        ),
                    ],
                    priority=1,
                ))
            elif action.kind == PlannedActionKind.MOVE and action.enables:
                contingencies.append(PlanContingency(
                    id=f"contingency-{action.id}-blocked",
                    triggered_by=f"Movement to {action.target_location_name} blocked",
                    trigger_condition="enemy_moved",
                    description="Path blocked - find alternate route or target",
                    alternative_actions=[PlannedAction(
                        id=f"alt-target-{action.id}",
                        kind=PlannedActionKind.ATTACK,
                        description="Attack nearest available target instead",
                        priority='medium',
                        confidence=60.0,
                        expected_outcome="Maintain offensive pressure",
                        asset_id=action.asset_id,
                        asset_name=action.asset_name,
                    )],
                    priority=2,
                ))

    valuable = sorted([a for a in context.assets if not a.is_base], key=lambda a: -a.cost)
    for asset in valuable[:2]:
        contingencies.append(PlanContingency(
            id=f"contingency-asset-lost-{asset.id}",
            triggered_by=f"{asset.name} destroyed",
            trigger_condition="asset_destroyed",
            description=f"{asset.name} lost - purchase replacement",
            alternative_actions=[PlannedAction(
                id=f"replace-{asset.id}",
                kind=PlannedActionKind.PURCHASE,
                description=f"Purchase replacement for {asset.name}",
                priority='high',
                confidence=50.0,
                expected_outcome="Restore capability",
                cost=asset.cost,
            )],
            priority=1,
        ))

    return contingencies


def create_resource_budget(turn_plans: List[TurnPlan], current_funds: int,
                           config: PlannerConfig) -> ResourceBudget:
    budget = ResourceBudget(
        current_funds=current_funds,
        projected_income=[config.income_per_turn for _ in turn_plans],
    )
    for turn_plan in turn_plans:
        for action in turn_plan.actions:
            if action.cost > 0:
                budget.planned_expenses.append(PlannedExpense(turn_plan.turn, action.cost, action.description))

    total = sum(e.amount for e in budget.planned_expenses)
    if total > current_funds and config.income_per_turn > 0:
        budget.saving_goal = SavingGoal(
            target_amount=total,
            target_turn=math.ceil((total - current_funds) / config.income_per_turn),
            purpose="Fund planned actions",
        )
    return budget


def analyze_threats(context: PlanningContext) -> List[IdentifiedThreat]:
    threats = []
    for asset in context.assets:
        for enemy in context.enemies:
            if any(a.location == asset.location for a in enemy.assets):
                threats.append(IdentifiedThreat(
                    description=f"{enemy.name} has forces threatening our {asset.name}",
                    severity='critical' if asset.is_base else 'high',
                    response=f"Reinforce position or retreat {asset.name}",
                ))

    ours = strength(context.faction)
    for enemy in context.enemies:
        if enemy.strength > ours * 1.5:
            threats.append(IdentifiedThreat(
                description=f"{enemy.name} is significantly stronger than us",
                severity='medium',
                response="Build up forces before engaging",
            ))
    return threats


def analyze_opportunities(context: PlanningContext) -> List[IdentifiedOpportunity]:
    opportunities = []
    for enemy in context.enemies:
        for asset in enemy.assets:
            if asset.hp <= VULNERABLE_HP:
                opportunities.append(IdentifiedOpportunity(
                    description=f"{enemy.name}'s {asset.name} is weakened ({asset.hp} HP)",
                    value='high' if asset.is_base else 'medium',
                    action=f"Attack {asset.name} for easy victory",
                ))
    for enemy in context.enemies:
        for base in (a for a in enemy.assets if a.is_base):
            if not any(a.location == base.location and not a.is_base for a in enemy.assets):
                opportunities.append(IdentifiedOpportunity(
                    description=f"{enemy.name}'s Base of Influence is undefended",
                    value='high',
                    action="Strike at undefended base",
                ))

    free = [s for s in context.systems if not s.has_our_assets and not s.has_enemy_assets]
    if free:
        opportunities.append(IdentifiedOpportunity(
            description=f"{len(free)} systems available for expansion",
            value='medium',
            action="Expand to unclaimed territory",
        ))
    return opportunities


# =============================================================================
# MAIN ENTRY
# =============================================================================

def generate_strategic_plan(faction: Faction, world: WorldState, catalog, intent: StrategicIntent,
                            difficulty, horizon: Optional[int] = None,
                            config: Optional[PlannerConfig] = None,
                            id_factory: IdFactory = default_id_factory) -> StrategicPlan:
    """
    Build a multi-turn plan.

    Horizon defaults to the difficulty's horizon and is clamped to 1..max_horizon.
    """
    config = config or get_planner_config()
    level = Difficulty.parse(difficulty)
    if horizon is None:
        horizon = config.horizon_for(level)
    horizon = max(1, min(config.max_horizon, horizon))

    context = build_planning_context(faction, world, catalog, level)
    primary, secondary = identify_objectives(context, intent)

    actions = plan_backward_from_objective(primary, context)
    for objective in secondary:
        actions.extend(plan_backward_from_objective(objective, context)[:SECONDARY_ACTIONS_PER_OBJECTIVE])

    unique: List[PlannedAction] = []
    seen = set()
    for action in actions:
        if action.id not in seen:
            seen.add(action.id)
            unique.append(action)

    turn_plans = organize_turn_plans(unique, faction.funds, horizon, config)
    confidence = sum(a.confidence for a in unique) / len(unique) if unique else 50.0

    plan = StrategicPlan(
        id=id_factory(),
        faction_id=faction.id,
        faction_name=faction.name,
        created_at_turn=world.turn,
        last_updated_turn=world.turn,
        horizon=horizon,
        overall_confidence=confidence,
        primary_objective=primary,
        secondary_objectives=secondary,
        turn_plans=turn_plans,
        contingencies=generate_contingencies(turn_plans, context),
        budget=create_resource_budget(turn_plans, faction.funds, config),
        threats=analyze_threats(context),
        opportunities=analyze_opportunities(context),
    )
    plan.summary = _plan_summary(primary, turn_plans)
    plan.detailed_reasoning = _detailed_reasoning(primary, secondary, turn_plans, context)

    logger.info(f"📋 {faction.name} plan ({horizon} turns, {confidence:.0f}% confidence): {plan.summary}")
    return plan


def _plan_summary(objective: StrategicObjective, turn_plans: List[TurnPlan]) -> str:
    if not any(tp.actions for tp in turn_plans):
        return "Consolidating position and gathering resources"
    first = turn_plans[0].actions if turn_plans else []
    if first:
        return f"{objective.description} - Next: {first[0].description}"
    return objective.description


def _detailed_reasoning(primary: StrategicObjective, secondary: List[StrategicObjective],
                        turn_plans: List[TurnPlan], context: PlanningContext) -> List[str]:
    lines = [f"Primary objective: {primary.description}"]
    if secondary:
        lines.append("Secondary objectives: " + ", ".join(s.description for s in secondary))
    lines.append(f"Current resources: {context.faction.fac_creds} FacCreds")
    attackers = sum(1 for a in context.assets if a.has_attack)
    lines.append(f"Available assets: {len(context.assets)} total, {attackers} attackers")
    for turn_plan in turn_plans:
        if turn_plan.actions:
            lines.append(f"Turn {turn_plan.turn + 1}: {turn_plan.reasoning}")
    return lines


# =============================================================================
# PLAN MAINTENANCE
# =============================================================================

def evaluate_plan(plan: StrategicPlan, world: WorldState,
                  config: Optional[PlannerConfig] = None) -> PlanEvaluation:
    """Check a plan against the current world: missing assets, vanished targets, funds drift"""
    config = config or get_planner_config()
    faction = world.get_faction(plan.faction_id)
    if faction is None:
        return PlanEvaluation(plan.id, plan.faction_id, on_track=False, progress_percent=0.0,
                              blockers=["Faction no longer exists"], recommendation="replan",
                              reasoning="Faction no longer exists")
    blockers: List[str] = []
    unexpected: List[str] = []
    own_ids = {a.id for a in faction.assets}

    for action in plan.all_actions():
        if action.asset_id and action.asset_id not in own_ids:
            blockers.append(f"Asset {action.asset_name} no longer available")

    enemy_ids = {a.id for rival in world.rivals_of(faction.id) for a in rival.assets}
    for action in plan.all_actions():
        if action.target_asset_id and action.target_asset_id not in enemy_ids:
            unexpected.append(f"Target {action.target_asset_name} no longer exists")
    target_id = plan.primary_objective.target_asset_id
    if target_id and target_id not in enemy_ids and not any(a.target_asset_id == target_id
                                                            for a in plan.all_actions()):
        unexpected.append("Target asset has been destroyed")

    planned_cost = sum(a.cost for a in plan.all_actions())
    if planned_cost > faction.funds + config.cost_buffer:
        blockers.append("Insufficient resources for planned actions")

    issues = len(blockers) + len(unexpected)
    if issues >= 2:
        recommendation = "replan"
    elif issues == 1:
        recommendation = "adjust"
    else:
        recommendation = "continue"

    return PlanEvaluation(
        plan_id=plan.id,
        faction_id=plan.faction_id,
        on_track=issues == 0,
        progress_percent=max(0.0, 100.0 - issues * 20),
        blockers=blockers,
        unexpected_events=unexpected,
        recommendation=recommendation,
        reasoning=f"Plan blocked by: {', '.join(blockers)}" if blockers else "Plan progressing as expected",
    )


def should_replan(plan: StrategicPlan, evaluation: PlanEvaluation, current_turn: int,
                  config: Optional[PlannerConfig] = None) -> bool:
    config = config or get_planner_config()
    if evaluation.recommendation == "replan":
        return True
    if current_turn - plan.last_updated_turn >= config.replan_age:
        return True
    if plan.overall_confidence < config.replan_confidence:
        return True
    return not any(tp.actions for tp in plan.turn_plans)
