"""
Personality and Goal Synergy

The two adjustments layered over base utility:
- tag modifier: fixed bonuses or penalties from the faction's personality tags
- goal synergy: bonuses from the current strategic intent (focus, target
  rival, priority systems, aggression)
"""

from typing import List, Tuple

from ..goal_selection import TAG_GOAL_AFFINITIES
from ..models import ActionKind, Faction, FactionTag, StrategicFocus, StrategicIntent
from .base import CandidateAction

EXPANSIONIST_TAGS = frozenset([FactionTag.IMPERIALISTS, FactionTag.COLONISTS, FactionTag.PLANETARY_GOVERNMENT])
MOBILE_TAGS = frozenset([FactionTag.MERCENARY_GROUP, FactionTag.PIRATES])

# focus -> {action kind: (bonus, reason)}
FOCUS_SYNERGY = {
    StrategicFocus.MILITARY: {
        ActionKind.ATTACK: (40, "military focus strongly favors attacks"),
        ActionKind.MOVE: (15, "military values positioning"),
        ActionKind.DEFEND: (-5, "military prefers offense"),
    },
    StrategicFocus.ECONOMIC: {
        ActionKind.EXPAND: (25, "economic focus favors expansion"),
        ActionKind.DEFEND: (10, "economic focus protects assets"),
    },
    StrategicFocus.COVERT: {
        ActionKind.ATTACK: (30, "covert focus supports strikes"),
        ActionKind.MOVE: (15, "covert focus values positioning"),
    },
    StrategicFocus.EXPANSION: {
        ActionKind.EXPAND: (35, "expansion focus strongly favors BoI"),
        ActionKind.MOVE: (20, "expansion focus values movement"),
        ActionKind.ATTACK: (15, "clearing path for expansion"),
    },
    StrategicFocus.DEFENSIVE: {
        ActionKind.DEFEND: (25, "defensive focus favors defense"),
        ActionKind.ATTACK: (-10, "defensive focus discourages attacks"),
    },
    StrategicFocus.BALANCED: {
        ActionKind.ATTACK: (15, "balanced approach allows attacks"),
        ActionKind.MOVE: (10, "balanced values flexibility"),
    },
}


def calculate_tag_modifier(action: CandidateAction, faction: Faction) -> Tuple[float, List[str]]:
    modifier = 0.0
    reasons: List[str] = []

    for tag in faction.tags:
        affinity = TAG_GOAL_AFFINITIES.get(tag)
        if affinity is None:
            continue

        if action.kind == ActionKind.ATTACK:
            if affinity.aggression > 10:
                modifier += 15
                reasons.append(f"{tag.value} favors aggression")
            if affinity.aggression < -10:
                modifier -= 15
                reasons.append(f"{tag.value} discourages aggression")
        elif action.kind == ActionKind.DEFEND:
            if affinity.aggression < 0:
                modifier += 10
                reasons.append(f"{tag.value} favors caution")
        elif action.kind == ActionKind.EXPAND:
            if tag in EXPANSIONIST_TAGS:
                modifier += 15
                reasons.append(f"{tag.value} favors expansion")
        elif action.kind == ActionKind.MOVE:
            if tag in MOBILE_TAGS:
                modifier += 10
                reasons.append(f"{tag.value} favors mobility")

    return modifier, reasons


def calculate_goal_synergy(action: CandidateAction, intent: StrategicIntent) -> Tuple[float, List[str]]:
    synergy = 0.0
    reasons: List[str] = []

    bonus = FOCUS_SYNERGY.get(intent.primary_focus, {}).get(action.kind)
    if bonus is not None:
        synergy += bonus[0]
        reasons.append(bonus[1])

    if action.kind == ActionKind.ATTACK and intent.target_faction_id is not None \
            and action.target_faction_id == intent.target_faction_id:
        synergy += 30
        reasons.append("targeting primary threat")

    if action.kind == ActionKind.MOVE and intent.target_faction_id:
        synergy += 10
        reasons.append("moving toward threat")

    if action.source_location in intent.priority_systems or \
            (action.target_location and action.target_location in intent.priority_systems):
        synergy += 10
        reasons.append("priority system")

    if intent.aggression > 70:
        if action.kind == ActionKind.ATTACK:
            synergy += 25
            reasons.append("high aggression")
        if action.kind == ActionKind.DEFEND:
            synergy -= 10
            reasons.append("too aggressive to defend")
    elif intent.aggression > 50 and action.kind == ActionKind.ATTACK:
        synergy += 10
        reasons.append("moderate aggression")

    if intent.aggression < 30 and action.kind == ActionKind.DEFEND:
        synergy += 15
        reasons.append("low aggression favors defense")

    return synergy, reasons
