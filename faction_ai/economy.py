"""
Economy Planner

Decides how a faction spends FacCreds each turn: how much to hold back for
repairs given the threat picture, which damaged assets to fix first, and which
single asset to buy with what is left.

SWN rules applied:
- One asset purchase per turn
- Purchases happen on the homeworld or a world with a Base of Influence
- The faction needs the asset's rating, the world needs the asset's tech level
- Repairing costs 1 FacCred for the first batch, +1 for each additional batch
- A faction heals round((highest attr + lowest attr) / 2) HP for 1 FacCred

Invariants:
- repair_reserve + spending_budget <= available funds
- a purchase recommendation never costs more than spending_budget
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .combat import expected_damage
from .models import (
    AssetCategory, AssetDefinition, AssetType, BASE_OF_INFLUENCE_ID, Faction,
    FactionAsset, FactionTag, StrategicFocus, StrategicIntent, WorldState,
)
from .movement import get_movement_ability
from .strategy_config import get_config
from .threat_assessment import SectorThreatOverview

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

RESERVE_FACTOR = 0.8
CRITICAL_REPAIR_PRIORITY = 50
DUPLICATE_PENALTY = 25
FORCE_ATTACKER_GAP_BONUS = 60
OVER_CAP_MULTIPLIER = 0.5
FACTION_REPAIR_COST = 1
FACTION_REPAIR_HP_RATIO = 0.5


@dataclass
class EconomyConfig:
    reserve_factor: float = RESERVE_FACTOR
    critical_repair_priority: float = CRITICAL_REPAIR_PRIORITY
    duplicate_penalty: float = DUPLICATE_PENALTY
    force_attacker_gap_bonus: float = FORCE_ATTACKER_GAP_BONUS
    over_cap_multiplier: float = OVER_CAP_MULTIPLIER

    @classmethod
    def from_dict(cls, data: dict) -> "EconomyConfig":
        return cls(
            reserve_factor=data.get('reserve_factor', RESERVE_FACTOR),
            critical_repair_priority=data.get('critical_repair_priority', CRITICAL_REPAIR_PRIORITY),
            duplicate_penalty=data.get('duplicate_penalty', DUPLICATE_PENALTY),
            force_attacker_gap_bonus=data.get('force_attacker_gap_bonus', FORCE_ATTACKER_GAP_BONUS),
            over_cap_multiplier=data.get('over_cap_multiplier', OVER_CAP_MULTIPLIER),
        )


def get_economy_config() -> EconomyConfig:
    return EconomyConfig.from_dict(get_config().get_section('economy'))


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class RepairDecision:
    asset_id: str
    asset_name: str
    location: str
    current_hp: int
    max_hp: int
    damage_amount: int
    repair_cost: int
    priority: float
    reasoning: str


@dataclass
class FactionRepair:
    """Restoring the faction's own HP"""
    heal_amount: int
    hp_ratio: float
    cost: int = FACTION_REPAIR_COST
    reasoning: str = ""


@dataclass
class PurchaseRecommendation:
    definition: AssetDefinition
    location: str
    score: float
    base_score: float
    tag_synergy_score: float
    goal_synergy_score: float
    diversification_score: float
    strategic_needs_score: float
    over_cap: bool = False
    reasoning: str = ""

    @property
    def cost(self) -> int:
        return self.definition.cost


@dataclass
class EconomicPlan:
    faction_id: str
    available_funds: int
    threat_level: float
    repair_reserve: int
    spending_budget: int
    repair_decisions: List[RepairDecision] = field(default_factory=list)
    purchase_recommendation: Optional[PurchaseRecommendation] = None
    total_repair_cost: int = 0
    faction_repair: Optional[FactionRepair] = None
    reasoning: str = ""


class EconomyActionType(Enum):
    REPAIR = "repair"
    REPAIR_FACTION = "repair_faction"
    PURCHASE = "purchase"
    SAVE = "save"


@dataclass
class EconomyAction:
    action: EconomyActionType
    details: str
    repair: Optional[RepairDecision] = None
    purchase: Optional[PurchaseRecommendation] = None


# =============================================================================
# TAG / ASSET SYNERGY
# =============================================================================

@dataclass(frozen=True)
class TagAssetSynergy:
    preferred_types: frozenset
    preferred_categories: frozenset
    bonus: float


def _synergy(types, categories, bonus) -> TagAssetSynergy:
    return TagAssetSynergy(frozenset(types), frozenset(categories), bonus)


T = AssetType
C = AssetCategory
TAG_ASSET_SYNERGIES: Dict[FactionTag, TagAssetSynergy] = {
    FactionTag.COLONISTS: _synergy([T.FACILITY, T.LOGISTICS_FACILITY], [C.WEALTH], 15),
    FactionTag.DEEP_ROOTED: _synergy([T.FACILITY, T.MILITARY_UNIT], [C.FORCE], 15),
    FactionTag.EUGENICS_CULT: _synergy([T.SPECIAL_FORCES, T.MILITARY_UNIT], [C.FORCE, C.CUNNING], 20),
    FactionTag.EXCHANGE_CONSULATE: _synergy([T.FACILITY, T.STARSHIP], [C.WEALTH], 20),
    FactionTag.FANATICAL: _synergy([T.SPECIAL_FORCES, T.MILITARY_UNIT], [C.FORCE], 15),
    FactionTag.IMPERIALISTS: _synergy([T.MILITARY_UNIT, T.STARSHIP, T.FACILITY], [C.FORCE], 20),
    FactionTag.MACHIAVELLIAN: _synergy([T.SPECIAL_FORCES, T.TACTIC], [C.CUNNING], 20),
    FactionTag.MERCENARY_GROUP: _synergy([T.MILITARY_UNIT, T.SPECIAL_FORCES, T.STARSHIP], [C.FORCE], 15),
    FactionTag.PERIMETER_AGENCY: _synergy([T.SPECIAL_FORCES, T.TACTIC], [C.CUNNING, C.FORCE], 15),
    FactionTag.PIRATES: _synergy([T.STARSHIP, T.SPECIAL_FORCES], [C.CUNNING, C.WEALTH], 20),
    FactionTag.PLANETARY_GOVERNMENT: _synergy([T.FACILITY, T.MILITARY_UNIT], [C.FORCE, C.WEALTH], 15),
    FactionTag.PLUTOCRATIC: _synergy([T.FACILITY, T.SPECIAL_FORCES], [C.WEALTH], 25),
    FactionTag.PRECEPTOR_ARCHIVE: _synergy([T.FACILITY, T.SPECIAL_FORCES], [C.WEALTH, C.CUNNING], 15),
    FactionTag.PSYCHIC_ACADEMY: _synergy([T.SPECIAL_FORCES, T.TACTIC], [C.CUNNING], 20),
    FactionTag.SAVAGE: _synergy([T.MILITARY_UNIT, T.SPECIAL_FORCES], [C.FORCE], 15),
    FactionTag.SCAVENGERS: _synergy([T.STARSHIP, T.FACILITY], [C.WEALTH], 20),
    FactionTag.SECRETIVE: _synergy([T.SPECIAL_FORCES, T.TACTIC, T.LOGISTICS_FACILITY], [C.CUNNING], 25),
    FactionTag.TECHNICAL_EXPERTISE: _synergy([T.FACILITY, T.STARSHIP], [C.WEALTH], 15),
    FactionTag.THEOCRATIC: _synergy([T.SPECIAL_FORCES, T.FACILITY], [C.CUNNING, C.FORCE], 15),
    FactionTag.WARLIKE: _synergy([T.MILITARY_UNIT, T.SPECIAL_FORCES, T.STARSHIP], [C.FORCE], 25),
}


# definition id -> (passive, average income per turn)
INCOME_GENERATING_ASSETS: Dict[str, Tuple[bool, float]] = {
    'cunning_4_party_machine': (True, 1.0),
    'wealth_1_harvesters': (False, 0.5),
    'wealth_7_pretech_manufactory': (False, 2.25),
}


def is_income_asset(definition_id: str) -> bool:
    return definition_id in INCOME_GENERATING_ASSETS


def _is_mobile(definition: AssetDefinition) -> bool:
    return get_movement_ability(definition.id) is not None or definition.asset_type == AssetType.STARSHIP


# =============================================================================
# REPAIRS
# =============================================================================

def calculate_repair_priority(asset: FactionAsset, definition: Optional[AssetDefinition],
                              threat_level: float) -> Tuple[float, str]:
    if definition is None:
        return 0.0, "Unknown asset type"

    damage_percent = 1 - asset.hp / asset.max_hp if asset.max_hp > 0 else 0.0
    reasons = [f"{round(damage_percent * 100)}% damaged"]
    priority = damage_percent * 50

    if definition.cost >= 15:
        priority += 20
        reasons.append("high-value asset")
    elif definition.cost >= 8:
        priority += 10
        reasons.append("moderate-value asset")

    fights = definition.attack is not None or definition.counterattack is not None
    if threat_level > 50 and fights:
        priority += 15
        reasons.append("combat asset under threat")
    if asset.hp <= 2:
        priority += 25
        reasons.append("near destruction")
    if not fights:
        priority -= 10
        reasons.append("non-combat asset")

    return max(0.0, priority), ", ".join(reasons)


def calculate_repair_cost(damage_amount: int, healing_per_batch: int) -> int:
    """1 + 2 + ... + n FacCreds for n batches of healing"""
    if damage_amount <= 0 or healing_per_batch <= 0:
        return 0
    batches = math.ceil(damage_amount / healing_per_batch)
    return batches * (batches + 1) // 2


def generate_repair_decisions(faction: Faction, threat_level: float, catalog) -> List[RepairDecision]:
    """Damaged assets, most urgent first (stable for equal priority)"""
    attrs = faction.attributes
    healing_per_batch = max(attrs.force, attrs.cunning, attrs.wealth)
    decisions = []

    for asset in faction.assets:
        if asset.hp >= asset.max_hp:
            continue
        definition = catalog.get(asset.definition_id)
        damage = asset.max_hp - asset.hp
        priority, reasoning = calculate_repair_priority(asset, definition, threat_level)
        decisions.append(RepairDecision(
            asset_id=asset.id,
            asset_name=definition.name if definition else "Unknown",
            location=asset.location,
            current_hp=asset.hp,
            max_hp=asset.max_hp,
            damage_amount=damage,
            repair_cost=calculate_repair_cost(damage, healing_per_batch),
            priority=priority,
            reasoning=reasoning,
        ))

    decisions.sort(key=lambda d: -d.priority)
    return decisions


def calculate_repair_reserve(total_repair_cost: int, threat_level: float, available_funds: int,
                             reserve_factor: float = RESERVE_FACTOR) -> int:
    """Hold back up to 80% of outstanding repairs at full threat, nothing at zero threat"""
    multiplier = min(1.0, max(0.0, threat_level) / 100) * reserve_factor
    desired = math.ceil(total_repair_cost * multiplier)
    return max(0, min(desired, available_funds, total_repair_cost))


def select_repairs_within_budget(decisions: List[RepairDecision], budget: int) -> List[RepairDecision]:
    """Greedy in priority order; skipped repairs don't stop cheaper ones after them"""
    selected = []
    remaining = budget
    for decision in decisions:
        if decision.repair_cost <= remaining:
            selected.append(decision)
            remaining -= decision.repair_cost
    return selected


def recommend_faction_repair(faction: Faction) -> Optional[FactionRepair]:
    attrs = faction.attributes
    if attrs.hp >= attrs.max_hp:
        return None
    ratings = [attrs.force, attrs.cunning, attrs.wealth]
    heal = max(1, round((max(ratings) + min(ratings)) / 2))
    heal = min(heal, attrs.max_hp - attrs.hp)
    return FactionRepair(heal_amount=heal, hp_ratio=attrs.hp_ratio,
                         reasoning=f"Faction at {attrs.hp}/{attrs.max_hp} HP, heal {heal}")


# =============================================================================
# PURCHASE SCORING
# =============================================================================

def calculate_base_score(definition: AssetDefinition) -> float:
    score = math.sqrt(definition.hp) * 5

    if definition.attack:
        score += 10 + expected_damage(definition.attack.damage) * 3
    if definition.counterattack:
        score += 8 + expected_damage(definition.counterattack) * 2

    if definition.has_action:
        score += 8
    if definition.has_special:
        score += 5

    score += definition.required_rating * 3
    score -= definition.maintenance * 8
    if definition.requires_permission:
        score -= 5
    return max(0.0, score)


def calculate_tag_synergy_score(definition: AssetDefinition, faction: Faction) -> Tuple[float, List[str]]:
    score = 0.0
    reasons = []
    for tag in faction.tags:
        synergy = TAG_ASSET_SYNERGIES.get(tag)
        if synergy is None:
            continue
        if definition.asset_type in synergy.preferred_types:
            score += synergy.bonus
            reasons.append(f"{tag.value} favors {definition.asset_type.value}")
        if definition.category in synergy.preferred_categories:
            score += synergy.bonus * 0.5
            reasons.append(f"{tag.value} favors {definition.category.value}")
    return score, reasons


def calculate_goal_synergy_score(definition: AssetDefinition, intent: StrategicIntent) -> Tuple[float, List[str]]:
    score = 0.0
    reasons = []
    focus = intent.primary_focus

    if focus == StrategicFocus.MILITARY:
        if definition.category == AssetCategory.FORCE:
            score += 30
            reasons.append("Force asset for military focus")
        if definition.attack:
            score += 20
            reasons.append("Has attack capability")
    elif focus == StrategicFocus.ECONOMIC:
        if definition.category == AssetCategory.WEALTH:
            score += 30
            reasons.append("Wealth asset for economic focus")
        if definition.has_action:
            score += 10
            reasons.append("Has special action")
    elif focus == StrategicFocus.COVERT:
        if definition.category == AssetCategory.CUNNING:
            score += 30
            reasons.append("Cunning asset for covert focus")
        if definition.asset_type in (AssetType.SPECIAL_FORCES, AssetType.TACTIC):
            score += 15
            reasons.append("Covert-style asset type")
    elif focus == StrategicFocus.EXPANSION:
        if definition.asset_type in (AssetType.LOGISTICS_FACILITY, AssetType.STARSHIP):
            score += 25
            reasons.append("Supports expansion")
    elif focus == StrategicFocus.DEFENSIVE:
        if definition.counterattack:
            score += 25
            reasons.append("Has counterattack for defense")
        if definition.hp >= 10:
            score += 15
            reasons.append("High HP for durability")

    if intent.aggression > 60 and definition.attack:
        score += 10
        reasons.append("Aggressive stance favors attackers")
    if intent.aggression < 40 and definition.counterattack and not definition.attack:
        score += 10
        reasons.append("Defensive stance favors pure defenders")

    return score, reasons


def _owned_definitions(faction: Faction, catalog) -> List[Tuple[FactionAsset, AssetDefinition]]:
    owned = []
    for asset in faction.assets:
        definition = catalog.get(asset.definition_id)
        if definition is not None:
            owned.append((asset, definition))
    return owned


def calculate_diversification_score(definition: AssetDefinition, faction: Faction, catalog,
                                    duplicate_penalty: float = DUPLICATE_PENALTY) -> Tuple[float, List[str]]:
    score = 0.0
    reasons = []

    owned_count = sum(1 for a in faction.assets if a.definition_id == definition.id)
    if owned_count > 0:
        penalty = owned_count * duplicate_penalty
        score -= penalty
        reasons.append(f"already owns {owned_count} copy(s) (-{penalty:.0f})")
    else:
        score += 10
        reasons.append("new asset type (+10)")

    owned = _owned_definitions(faction, catalog)
    by_category = {c: 0 for c in AssetCategory}
    by_type: Dict[AssetType, int] = {}
    for _, owned_def in owned:
        by_category[owned_def.category] += 1
        by_type[owned_def.asset_type] = by_type.get(owned_def.asset_type, 0) + 1

    total = sum(by_category.values())
    if total > 0:
        ratio = by_category[definition.category] / total
        if ratio < 0.2:
            score += 15
            reasons.append(f"fills gap in {definition.category.value} (+15)")
        elif ratio < 0.33:
            score += 8
            reasons.append(f"expands {definition.category.value} (+8)")

    if not by_type.get(definition.asset_type):
        score += 12
        reasons.append(f"new type: {definition.asset_type.value} (+12)")

    return score, reasons


def calculate_strategic_needs_score(definition: AssetDefinition, faction: Faction, intent: StrategicIntent,
                                    catalog, config: EconomyConfig) -> Tuple[float, List[str]]:
    score = 0.0
    reasons = []

    has_force_attacker = False
    has_broad_attacker = False
    has_defender = False
    has_mobility = False
    has_income = False
    homeworld_defender_hp = 0
    attacker_count = 0

    for asset, owned_def in _owned_definitions(faction, catalog):
        if owned_def.attack:
            attacker_count += 1
            if owned_def.attack.defender_attribute == AssetCategory.FORCE:
                has_force_attacker = True
                has_broad_attacker = True
            if owned_def.attack.defender_attribute == AssetCategory.CUNNING:
                has_broad_attacker = True
        if owned_def.counterattack:
            has_defender = True
        if _is_mobile(owned_def):
            has_mobility = True
        if is_income_asset(owned_def.id):
            has_income = True
        if asset.location == faction.homeworld and owned_def.counterattack:
            homeworld_defender_hp += asset.hp

    target = definition.attack.defender_attribute if definition.attack else None

    if target == AssetCategory.FORCE:
        if not has_force_attacker:
            score += config.force_attacker_gap_bonus
            reasons.append(f"CRITICAL: Force attacker (+{config.force_attacker_gap_bonus:.0f})")
        else:
            score += 25
            reasons.append("Force attacker (+25)")
        avg = expected_damage(definition.attack.damage)
        if avg >= 4:
            score += avg * 3
            reasons.append(f"high damage {avg:.1f} (+{avg * 3:.0f})")
    elif target == AssetCategory.CUNNING:
        if not has_broad_attacker:
            score += 40
            reasons.append("Cunning attacker needed (+40)")
        else:
            score += 15
            reasons.append("Cunning attacker (+15)")
    elif target == AssetCategory.WEALTH:
        score += 10
        reasons.append("Wealth attacker (+10)")

    if attacker_count == 0 and definition.attack:
        score += 35
        reasons.append("no attackers yet (+35)")

    if definition.attack and _is_mobile(definition):
        score += 30
        reasons.append("mobile attacker (+30)")

    if not has_defender and definition.counterattack:
        score += 20
        reasons.append("fills defender gap (+20)")

    if not has_income and is_income_asset(definition.id):
        passive, _ = INCOME_GENERATING_ASSETS[definition.id]
        bonus = 20 if passive else 10
        score += bonus
        reasons.append(f"provides income (+{bonus})")

    if faction.fac_creds <= 5 and not has_force_attacker and target == AssetCategory.FORCE:
        score += 20
        reasons.append("need attacker even with low funds (+20)")

    focus = intent.primary_focus
    if focus == StrategicFocus.EXPANSION and not has_mobility and _is_mobile(definition):
        score += 20
        reasons.append("expansion needs mobility (+20)")
    if focus == StrategicFocus.MILITARY and definition.attack:
        score += 15
        reasons.append("military focus (+15)")
    if focus == StrategicFocus.DEFENSIVE and homeworld_defender_hp < 10 \
            and definition.counterattack and definition.hp >= 6:
        score += 15
        reasons.append("homeworld defense (+15)")
    if focus == StrategicFocus.COVERT and definition.asset_type == AssetType.SPECIAL_FORCES:
        score += 10
        reasons.append("covert ops (+10)")

    return score, reasons


# =============================================================================
# PURCHASE LEGALITY
# =============================================================================

def get_valid_purchase_locations(faction: Faction) -> List[str]:
    """Homeworld first, then every Base of Influence world"""
    locations = [faction.homeworld]
    for asset in faction.assets:
        if asset.definition_id == BASE_OF_INFLUENCE_ID and asset.location not in locations:
            locations.append(asset.location)
    return locations


def category_count(faction: Faction, category: AssetCategory, catalog) -> int:
    return sum(1 for _, d in _owned_definitions(faction, catalog) if d.category == category)


def can_purchase_asset(faction: Faction, definition: AssetDefinition, location: str,
                       world: WorldState, catalog) -> Tuple[bool, bool, str]:
    """
    Check rating and tech level at a location.

    Returns:
        (can purchase, would exceed category cap, reason)
    """
    rating = faction.attributes.rating(definition.category)
    if rating < definition.required_rating:
        return False, False, f"Requires {definition.category.value} {definition.required_rating}"

    system = world.get_system(location)
    if system is not None and system.tech_level < definition.tech_level:
        return False, False, f"Location TL{system.tech_level} < required TL{definition.tech_level}"

    current = category_count(faction, definition.category, catalog)
    if current >= rating:
        return True, True, f"Would exceed {definition.category.value} asset limit ({current}/{rating})"
    return True, False, "Meets all requirements"


def generate_purchase_recommendations(faction: Faction, world: WorldState, intent: StrategicIntent,
                                      budget: int, catalog,
                                      config: Optional[EconomyConfig] = None) -> List[PurchaseRecommendation]:
    """Every affordable, legal purchase, best first"""
    config = config or get_economy_config()
    locations = get_valid_purchase_locations(faction)
    recommendations = []

    for definition in catalog.purchasable():
        if definition.cost > budget:
            continue
        if faction.attributes.rating(definition.category) < definition.required_rating:
            continue

        best_location = None
        over_cap = False
        for location in locations:
            allowed, exceeds, _ = can_purchase_asset(faction, definition, location, world, catalog)
            if not allowed:
                continue
            if not exceeds:
                best_location, over_cap = location, False
                break
            if best_location is None:
                best_location, over_cap = location, True
        if best_location is None:
            continue

        base = calculate_base_score(definition)
        tag, tag_reasons = calculate_tag_synergy_score(definition, faction)
        goal, goal_reasons = calculate_goal_synergy_score(definition, intent)
        diversity, diversity_reasons = calculate_diversification_score(
            definition, faction, catalog, config.duplicate_penalty)
        needs, needs_reasons = calculate_strategic_needs_score(definition, faction, intent, catalog, config)

        total = base + tag + goal + diversity + needs
        if over_cap:
            total *= config.over_cap_multiplier

        parts = [f"Base: {base:.0f}"]
        if tag:
            parts.append(f"Tags: {', '.join(tag_reasons)}")
        if goal:
            parts.append(f"Goal: {', '.join(goal_reasons)}")
        if diversity:
            parts.append(f"Diversity: {', '.join(diversity_reasons)}")
        if needs:
            parts.append(f"Needs: {', '.join(needs_reasons)}")

        recommendations.append(PurchaseRecommendation(
            definition=definition,
            location=best_location,
            score=total,
            base_score=base,
            tag_synergy_score=tag,
            goal_synergy_score=goal,
            diversification_score=diversity,
            strategic_needs_score=needs,
            over_cap=over_cap,
            reasoning=" | ".join(parts),
        ))

    recommendations.sort(key=lambda r: -r.score)
    return recommendations


# =============================================================================
# PLAN
# =============================================================================

def average_threat_level(threat_overview: SectorThreatOverview) -> float:
    threats = list(threat_overview.system_threats.values())
    if not threats:
        return 0.0
    return sum(t.overall_danger for t in threats) / len(threats)


def generate_economic_plan(faction: Faction, world: WorldState, threat_overview: SectorThreatOverview,
                           intent: StrategicIntent, catalog,
                           config: Optional[EconomyConfig] = None) -> EconomicPlan:
    config = config or get_economy_config()
    available = faction.funds
    threat_level = average_threat_level(threat_overview)

    repairs = generate_repair_decisions(faction, threat_level, catalog)
    total_repair_cost = sum(r.repair_cost for r in repairs)
    reserve = calculate_repair_reserve(total_repair_cost, threat_level, available, config.reserve_factor)
    budget = max(0, available - reserve)

    recommendations = generate_purchase_recommendations(faction, world, intent, budget, catalog, config)
    purchase = recommendations[0] if recommendations else None

    plan = EconomicPlan(
        faction_id=faction.id,
        available_funds=available,
        threat_level=threat_level,
        repair_reserve=reserve,
        spending_budget=budget,
        repair_decisions=repairs,
        purchase_recommendation=purchase,
        total_repair_cost=total_repair_cost,
        faction_repair=recommend_faction_repair(faction),
    )

    parts = [f"Available: {available} FacCreds", f"Threat level: {threat_level:.0f}%"]
    if repairs:
        parts.append(f"{len(repairs)} damaged assets ({total_repair_cost} FacCreds to fully repair)")
        parts.append(f"Reserving {reserve} FacCreds for repairs")
    if purchase:
        parts.append(f"Recommending {purchase.definition.name} (score: {purchase.score:.0f})")
    elif budget > 0:
        parts.append("No suitable assets available within budget")
    else:
        parts.append("No budget for purchases after repair reserve")
    plan.reasoning = ". ".join(parts)

    logger.info(f"💰 {faction.name}: {plan.reasoning}")
    return plan


def get_economy_action(plan: EconomicPlan,
                       critical_priority: float = CRITICAL_REPAIR_PRIORITY) -> EconomyAction:
    """Critical repair, else faction heal when badly hurt, else purchase, else save"""
    critical = [r for r in plan.repair_decisions if r.priority >= critical_priority]
    if critical and plan.repair_reserve >= critical[0].repair_cost:
        repair = critical[0]
        return EconomyAction(EconomyActionType.REPAIR,
                             f"Repair {repair.asset_name} (priority: {repair.priority:.0f})", repair=repair)

    faction_repair = plan.faction_repair
    if faction_repair is not None and faction_repair.hp_ratio < FACTION_REPAIR_HP_RATIO \
            and plan.available_funds >= faction_repair.cost:
        return EconomyAction(EconomyActionType.REPAIR_FACTION, f"Repair faction HP (+{faction_repair.heal_amount})")

    purchase = plan.purchase_recommendation
    if purchase is not None and purchase.cost <= plan.spending_budget:
        return EconomyAction(EconomyActionType.PURCHASE,
                             f"Buy {purchase.definition.name} at {purchase.location}", purchase=purchase)

    return EconomyAction(EconomyActionType.SAVE, "Conserve FacCreds for future turns")
