"""
Goal Selection

Picks a faction's long-term goal from the fixed catalog and derives the
Strategic Intent that steers one turn of scoring.

Each goal's weight is:

    clamp(base + tag modifier + situational modifier, 0, 100)

- Base: scales with the attribute the goal draws on (force goals with Force,
  and so on). Expand Influence is flat, which guarantees some goal is always
  available.
- Tags: +20 for each owned tag that prefers the goal, -25 for each that avoids it.
- Situation: low HP favours recovery, high funds favour spending, few assets
  favour expansion, enemy count and relative strength favour caution or
  aggression.

Changing goals requires the best alternative to beat the current goal by more
than 30 points, so factions don't flip-flop turn to turn.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .models import (
    AssetCategory, Faction, FactionTag, Goal, GoalProgress, GoalType,
    StrategicFocus, StrategicIntent, WorldState,
)
from .randomness import IdFactory, default_id_factory
from .strategy_config import get_config

logger = logging.getLogger(__name__)


# =============================================================================
# TAG AFFINITIES
# =============================================================================

@dataclass(frozen=True)
class TagGoalAffinity:
    preferred: FrozenSet[GoalType]
    avoided: FrozenSet[GoalType]
    aggression: int


def _affinity(preferred, avoided, aggression) -> TagGoalAffinity:
    return TagGoalAffinity(frozenset(preferred), frozenset(avoided), aggression)


G = GoalType
TAG_GOAL_AFFINITIES: Dict[FactionTag, TagGoalAffinity] = {
    FactionTag.COLONISTS: _affinity(
        [G.EXPAND_INFLUENCE, G.PEACEABLE_KINGDOM], [G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE], -10),
    FactionTag.DEEP_ROOTED: _affinity(
        [G.PEACEABLE_KINGDOM, G.EXPAND_INFLUENCE], [G.MILITARY_CONQUEST], -5),
    FactionTag.EUGENICS_CULT: _affinity(
        [G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY, G.BLOOD_THE_ENEMY], [G.PEACEABLE_KINGDOM], 10),
    FactionTag.EXCHANGE_CONSULATE: _affinity(
        [G.COMMERCIAL_EXPANSION, G.WEALTH_OF_WORLDS, G.PEACEABLE_KINGDOM],
        [G.MILITARY_CONQUEST, G.DESTROY_THE_FOE], -15),
    FactionTag.FANATICAL: _affinity(
        [G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE, G.MILITARY_CONQUEST], [G.PEACEABLE_KINGDOM], 20),
    FactionTag.IMPERIALISTS: _affinity(
        [G.PLANETARY_SEIZURE, G.MILITARY_CONQUEST, G.EXPAND_INFLUENCE], [G.PEACEABLE_KINGDOM], 15),
    FactionTag.MACHIAVELLIAN: _affinity(
        [G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY, G.BLOOD_THE_ENEMY], [G.INVINCIBLE_VALOR], 5),
    FactionTag.MERCENARY_GROUP: _affinity(
        [G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR, G.BLOOD_THE_ENEMY],
        [G.PEACEABLE_KINGDOM, G.WEALTH_OF_WORLDS], 10),
    FactionTag.PERIMETER_AGENCY: _affinity(
        [G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY, G.DESTROY_THE_FOE], [G.PEACEABLE_KINGDOM], 5),
    FactionTag.PIRATES: _affinity(
        [G.COMMERCIAL_EXPANSION, G.BLOOD_THE_ENEMY, G.WEALTH_OF_WORLDS],
        [G.PEACEABLE_KINGDOM, G.PLANETARY_SEIZURE], 10),
    FactionTag.PLANETARY_GOVERNMENT: _affinity(
        [G.EXPAND_INFLUENCE, G.PEACEABLE_KINGDOM, G.PLANETARY_SEIZURE], [G.DESTROY_THE_FOE], 0),
    FactionTag.PLUTOCRATIC: _affinity(
        [G.WEALTH_OF_WORLDS, G.COMMERCIAL_EXPANSION, G.EXPAND_INFLUENCE],
        [G.INVINCIBLE_VALOR, G.MILITARY_CONQUEST], -5),
    FactionTag.PRECEPTOR_ARCHIVE: _affinity(
        [G.EXPAND_INFLUENCE, G.PEACEABLE_KINGDOM, G.INTELLIGENCE_COUP],
        [G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE], -10),
    FactionTag.PSYCHIC_ACADEMY: _affinity(
        [G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY, G.EXPAND_INFLUENCE], [G.MILITARY_CONQUEST], 0),
    FactionTag.SAVAGE: _affinity(
        [G.BLOOD_THE_ENEMY, G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR],
        [G.PEACEABLE_KINGDOM, G.COMMERCIAL_EXPANSION], 15),
    FactionTag.SCAVENGERS: _affinity(
        [G.WEALTH_OF_WORLDS, G.COMMERCIAL_EXPANSION, G.EXPAND_INFLUENCE], [G.DESTROY_THE_FOE], 0),
    FactionTag.SECRETIVE: _affinity(
        [G.INSIDE_ENEMY_TERRITORY, G.INTELLIGENCE_COUP, G.PEACEABLE_KINGDOM],
        [G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR], -5),
    FactionTag.TECHNICAL_EXPERTISE: _affinity(
        [G.EXPAND_INFLUENCE, G.WEALTH_OF_WORLDS, G.COMMERCIAL_EXPANSION], [G.BLOOD_THE_ENEMY], -5),
    FactionTag.THEOCRATIC: _affinity(
        [G.EXPAND_INFLUENCE, G.PLANETARY_SEIZURE, G.INTELLIGENCE_COUP], [], 5),
    FactionTag.WARLIKE: _affinity(
        [G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR, G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE],
        [G.PEACEABLE_KINGDOM, G.COMMERCIAL_EXPANSION], 20),
}

# Catalog order, used for tie-breaking
GOAL_CATALOG: List[GoalType] = list(GoalType)

GOAL_CATEGORIES: Dict[str, FrozenSet[GoalType]] = {
    "Force": frozenset([G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR]),
    "Cunning": frozenset([G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY]),
    "Wealth": frozenset([G.COMMERCIAL_EXPANSION, G.WEALTH_OF_WORLDS]),
    "Mixed": frozenset([G.PLANETARY_SEIZURE, G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE]),
    "Special": frozenset([G.EXPAND_INFLUENCE, G.PEACEABLE_KINGDOM]),
}

GOAL_ATTRIBUTE: Dict[GoalType, AssetCategory] = {
    G.MILITARY_CONQUEST: AssetCategory.FORCE,
    G.INVINCIBLE_VALOR: AssetCategory.FORCE,
    G.INTELLIGENCE_COUP: AssetCategory.CUNNING,
    G.INSIDE_ENEMY_TERRITORY: AssetCategory.CUNNING,
    G.COMMERCIAL_EXPANSION: AssetCategory.WEALTH,
    G.WEALTH_OF_WORLDS: AssetCategory.WEALTH,
}

DIFFICULT_GOALS = frozenset([G.DESTROY_THE_FOE, G.PLANETARY_SEIZURE, G.INVINCIBLE_VALOR])

TAG_PREFER_BONUS = 20
TAG_AVOID_PENALTY = -25
CHANGE_GOAL_THRESHOLD = 30


@dataclass
class GoalConfig:
    tag_prefer_bonus: float = TAG_PREFER_BONUS
    tag_avoid_penalty: float = TAG_AVOID_PENALTY
    change_goal_threshold: float = CHANGE_GOAL_THRESHOLD

    @classmethod
    def from_dict(cls, data: dict) -> "GoalConfig":
        return cls(
            tag_prefer_bonus=data.get('tag_prefer_bonus', TAG_PREFER_BONUS),
            tag_avoid_penalty=data.get('tag_avoid_penalty', TAG_AVOID_PENALTY),
            change_goal_threshold=data.get('change_goal_threshold', CHANGE_GOAL_THRESHOLD),
        )


def get_goal_config() -> GoalConfig:
    return GoalConfig.from_dict(get_config().get_section('goal_selection'))


@dataclass
class GoalWeight:
    goal_type: GoalType
    base_weight: float
    tag_modifier: float
    situational_modifier: float
    final_weight: float
    reasoning: List[str] = field(default_factory=list)


def strength(faction: Faction) -> int:
    return faction.attributes.total


# =============================================================================
# WEIGHTS
# =============================================================================

def _base_weight(goal_type: GoalType, faction: Faction) -> Tuple[float, str]:
    attrs = faction.attributes
    category = GOAL_ATTRIBUTE.get(goal_type)
    if category is not None:
        rating = attrs.rating(category)
        return 30 + rating * 8, f"{category.value} {rating}"
    if goal_type == G.PLANETARY_SEIZURE:
        return 35 + (attrs.force + attrs.cunning) / 2 * 6, "Force/Cunning average"
    if goal_type == G.BLOOD_THE_ENEMY:
        return 25 + attrs.total * 3, "total attributes"
    if goal_type == G.DESTROY_THE_FOE:
        return 20 + attrs.total * 4, "total attributes"
    if goal_type == G.EXPAND_INFLUENCE:
        return 50, "always available"
    if goal_type == G.PEACEABLE_KINGDOM:
        if attrs.hp_ratio < 0.5:
            return 60, "recovering from damage"
        return 30, "stable"
    return 40, "default"


def _tag_modifier(goal_type: GoalType, faction: Faction, config: GoalConfig) -> Tuple[float, List[str]]:
    modifier = 0.0
    reasons = []
    for tag in faction.tags:
        affinity = TAG_GOAL_AFFINITIES.get(tag)
        if affinity is None:
            continue
        if goal_type in affinity.preferred:
            modifier += config.tag_prefer_bonus
            reasons.append(f"{tag.value} prefers")
        if goal_type in affinity.avoided:
            modifier += config.tag_avoid_penalty
            reasons.append(f"{tag.value} avoids")
    return modifier, reasons


def _situational_modifier(goal_type: GoalType, faction: Faction, world: WorldState) -> Tuple[float, List[str]]:
    modifier = 0.0
    reasons = []
    enemies = world.rivals_of(faction.id)
    attrs = faction.attributes

    if attrs.hp_ratio < 0.4:
        if goal_type == G.PEACEABLE_KINGDOM:
            modifier += 30
            reasons.append("low HP favours recovery")
        elif goal_type in (G.BLOOD_THE_ENEMY, G.DESTROY_THE_FOE, G.MILITARY_CONQUEST):
            modifier -= 20
            reasons.append("low HP discourages aggression")

    if faction.fac_creds > 10:
        if goal_type == G.WEALTH_OF_WORLDS:
            modifier += 15
            reasons.append("high funds")
        elif goal_type == G.EXPAND_INFLUENCE:
            modifier += 10
            reasons.append("funds for expansion")

    if len(faction.assets) < 3 and goal_type == G.EXPAND_INFLUENCE:
        modifier += 20
        reasons.append("few assets")

    if len(enemies) >= 3 and goal_type == G.PEACEABLE_KINGDOM:
        modifier += 10
        reasons.append("many enemies")

    if len(enemies) == 1 and goal_type == G.DESTROY_THE_FOE:
        if strength(enemies[0]) < strength(faction) * 0.7:
            modifier += 25
            reasons.append("single weak enemy")

    if attrs.force >= 4 and goal_type in (G.MILITARY_CONQUEST, G.INVINCIBLE_VALOR):
        modifier += 10
        reasons.append("strong Force")
    if attrs.cunning >= 4 and goal_type in (G.INTELLIGENCE_COUP, G.INSIDE_ENEMY_TERRITORY):
        modifier += 10
        reasons.append("strong Cunning")
    if attrs.wealth >= 4 and goal_type in (G.COMMERCIAL_EXPANSION, G.WEALTH_OF_WORLDS):
        modifier += 10
        reasons.append("strong Wealth")

    return modifier, reasons


def calculate_goal_weights(faction: Faction, world: WorldState,
                           config: Optional[GoalConfig] = None) -> List[GoalWeight]:
    """Weights for the whole catalog, in catalog order"""
    config = config or get_goal_config()
    weights = []
    for goal_type in GOAL_CATALOG:
        base, base_reason = _base_weight(goal_type, faction)
        tag, tag_reasons = _tag_modifier(goal_type, faction, config)
        situational, situation_reasons = _situational_modifier(goal_type, faction, world)
        final = max(0.0, min(100.0, base + tag + situational))
        weights.append(GoalWeight(
            goal_type=goal_type,
            base_weight=base,
            tag_modifier=tag,
            situational_modifier=situational,
            final_weight=final,
            reasoning=[f"Base: {base_reason}"] + tag_reasons + situation_reasons,
        ))
    return weights


def select_best_goal(faction: Faction, world: WorldState,
                     config: Optional[GoalConfig] = None) -> Optional[GoalType]:
    weights = calculate_goal_weights(faction, world, config)
    best = None
    for weight in weights:
        # strict comparison keeps the earliest catalog entry on ties
        if best is None or weight.final_weight > best.final_weight:
            best = weight
    if best is not None and best.final_weight > 0:
        return best.goal_type
    return None


def should_change_goal(faction: Faction, world: WorldState,
                       config: Optional[GoalConfig] = None) -> Tuple[bool, str]:
    if faction.goal is None:
        return True, "No current goal"
    if faction.goal.is_completed:
        return True, "Current goal completed"

    config = config or get_goal_config()
    weights = calculate_goal_weights(faction, world, config)
    current = next((w for w in weights if w.goal_type == faction.goal.goal_type), None)
    best = weights[0]
    for weight in weights[1:]:
        if weight.final_weight > best.final_weight:
            best = weight

    if current is not None and best.final_weight - current.final_weight > config.change_goal_threshold:
        return True, (f"Better goal available: {best.goal_type.value} "
                      f"({best.final_weight:.0f} vs {current.final_weight:.0f})")
    return False, "Current goal remains optimal"


# =============================================================================
# STRATEGIC INTENT
# =============================================================================

def determine_strategic_intent(faction: Faction, goal_type: Optional[GoalType],
                               world: WorldState) -> StrategicIntent:
    aggression = 50.0
    for tag in faction.tags:
        affinity = TAG_GOAL_AFFINITIES.get(tag)
        if affinity:
            aggression += affinity.aggression

    hp_ratio = faction.attributes.hp_ratio
    if hp_ratio < 0.5:
        aggression -= 15
    if hp_ratio < 0.3:
        aggression -= 15

    if goal_type is None:
        focus = StrategicFocus.DEFENSIVE
    elif goal_type in GOAL_CATEGORIES["Force"] or goal_type == G.BLOOD_THE_ENEMY:
        focus = StrategicFocus.MILITARY
        aggression += 10
    elif goal_type in GOAL_CATEGORIES["Cunning"]:
        focus = StrategicFocus.COVERT
    elif goal_type in GOAL_CATEGORIES["Wealth"]:
        focus = StrategicFocus.ECONOMIC
        aggression -= 10
    elif goal_type in (G.EXPAND_INFLUENCE, G.PLANETARY_SEIZURE):
        focus = StrategicFocus.EXPANSION
    elif goal_type == G.PEACEABLE_KINGDOM:
        focus = StrategicFocus.DEFENSIVE
        aggression -= 20
    elif goal_type == G.DESTROY_THE_FOE:
        focus = StrategicFocus.MILITARY
        aggression += 20
    else:
        focus = StrategicFocus.BALANCED

    target = None
    enemies = world.rivals_of(faction.id)
    if enemies:
        if goal_type == G.DESTROY_THE_FOE:
            target = min(enemies, key=strength).id
        else:
            target = max(enemies, key=strength).id

    priority = [faction.homeworld]
    for asset in faction.assets:
        if asset.location not in priority:
            priority.append(asset.location)

    if focus == StrategicFocus.EXPANSION:
        held = set(priority)
        for system in world.systems[:3]:
            if system.id not in held and len(priority) < 5:
                priority.append(system.id)

    intent = StrategicIntent(
        primary_focus=focus,
        aggression=max(0.0, min(100.0, aggression)),
        target_faction_id=target,
        priority_systems=priority,
    )
    logger.debug(f"🎯 Intent for {faction.name}: focus={focus.value}, "
                 f"aggression={intent.aggression:.0f}, target={target}")
    return intent


@dataclass
class GoalEvaluation:
    current_goal: Optional[Goal]
    recommended_goal: Optional[GoalType]
    goal_weights: List[GoalWeight]
    intent: StrategicIntent
    should_change: bool
    change_reason: str


def evaluate_goals(faction: Faction, world: WorldState,
                   config: Optional[GoalConfig] = None) -> GoalEvaluation:
    """
    Full goal analysis for one faction.

    The intent follows the goal the faction will actually pursue: the
    recommendation when a change is due, otherwise the current goal.
    """
    config = config or get_goal_config()
    weights = calculate_goal_weights(faction, world, config)
    recommended = select_best_goal(faction, world, config)
    change, reason = should_change_goal(faction, world, config)

    if change or faction.goal is None:
        pursued = recommended
    else:
        pursued = faction.goal.goal_type

    return GoalEvaluation(
        current_goal=faction.goal,
        recommended_goal=recommended,
        goal_weights=weights,
        intent=determine_strategic_intent(faction, pursued, world),
        should_change=change,
        change_reason=reason,
    )


# =============================================================================
# GOAL INSTANCES
# =============================================================================

def create_goal_instance(goal_type: GoalType, faction: Faction,
                         id_factory: IdFactory = default_id_factory) -> Goal:
    f = faction.attributes.force
    c = faction.attributes.cunning
    w = faction.attributes.wealth

    targets = {
        G.MILITARY_CONQUEST: (f, f"Destroy {f} enemy Force assets"),
        G.COMMERCIAL_EXPANSION: (w, f"Destroy {w} enemy Wealth assets"),
        G.INTELLIGENCE_COUP: (c, f"Destroy {c} enemy Cunning assets"),
        G.INSIDE_ENEMY_TERRITORY: (c, f"Place {c} stealthed assets on enemy worlds"),
        G.BLOOD_THE_ENEMY: (f + c + w, f"Deal {f + c + w} HP damage to rival factions"),
        G.WEALTH_OF_WORLDS: (w * 4, f"Spend {w * 4} FacCreds on bribes and influence"),
        G.PEACEABLE_KINGDOM: (4, "Avoid Attack actions for 4 consecutive turns"),
        G.PLANETARY_SEIZURE: (1, "Seize control of a planet and become its government"),
        G.EXPAND_INFLUENCE: (1, "Establish a new Base of Influence on an unclaimed planet"),
        G.DESTROY_THE_FOE: (1, "Completely eliminate a rival faction"),
        G.INVINCIBLE_VALOR: (1, "Destroy a Force asset with higher rating than your Force"),
    }
    target, description = targets[goal_type]

    return Goal(
        id=id_factory(),
        goal_type=goal_type,
        description=description,
        progress=GoalProgress(current=0, target=target),
        difficulty=2 if goal_type in DIFFICULT_GOALS else 1,
    )
