"""
Action Generator

Enumerates every legal candidate action for a faction this turn, in a fixed
order: moves, attacks, expansions, then defends. That order is the tie-break
order for equal scores downstream.

Candidates are built from a read-only snapshot. Asset definitions that the
catalog does not know are skipped.
"""

import logging
from typing import List, Optional

from .evaluators.base import CandidateAction
from .models import ActionKind, AssetType, Faction, FactionTag, WorldState
from .movement import RouteMovementOracle, get_movement_ability, movement_range

logger = logging.getLogger(__name__)

DEFEND_NAME_LIMIT = 3
MOBILE_TAGS = frozenset([FactionTag.MERCENARY_GROUP])


def _system_name(world: WorldState, system_id: str) -> str:
    system = world.get_system(system_id)
    return system.name if system else system_id


def _can_move(faction: Faction, definition) -> bool:
    if get_movement_ability(definition.id) is not None:
        return True
    if definition.asset_type == AssetType.STARSHIP:
        return True
    return any(tag in MOBILE_TAGS for tag in faction.tags)


def generate_move_actions(faction: Faction, world: WorldState, catalog,
                          oracle: RouteMovementOracle) -> List[CandidateAction]:
    actions = []
    for asset in faction.assets:
        definition = catalog.get(asset.definition_id)
        if definition is None or not _can_move(faction, definition):
            continue
        for destination in oracle.reachable(asset.location, movement_range(definition.id)):
            actions.append(CandidateAction(
                kind=ActionKind.MOVE,
                acting_asset_id=asset.id,
                acting_asset_name=definition.name,
                source_location=asset.location,
                target_location=destination,
                description=f"Move {definition.name} to {_system_name(world, destination)}",
            ))
    return actions


def generate_attack_actions(faction: Faction, world: WorldState, catalog) -> List[CandidateAction]:
    actions = []
    rivals = world.rivals_of(faction.id)
    for asset in faction.assets:
        definition = catalog.get(asset.definition_id)
        if definition is None or definition.attack is None:
            continue
        for rival in rivals:
            for target in rival.assets:
                if target.location != asset.location or target.stealthed:
                    continue
                target_def = catalog.get(target.definition_id)
                if target_def is None:
                    continue
                actions.append(CandidateAction(
                    kind=ActionKind.ATTACK,
                    acting_asset_id=asset.id,
                    acting_asset_name=definition.name,
                    source_location=asset.location,
                    target_location=target.location,
                    target_faction_id=rival.id,
                    target_asset_id=target.id,
                    target_asset_name=target_def.name,
                    description=f"{definition.name} attacks {rival.name}'s {target_def.name}",
                ))
    return actions


def _occupied_locations(faction: Faction) -> List[str]:
    locations = []
    for asset in faction.assets:
        if asset.location not in locations:
            locations.append(asset.location)
    return locations


def generate_expand_actions(faction: Faction, world: WorldState) -> List[CandidateAction]:
    actions = []
    for location in _occupied_locations(faction):
        if faction.has_base_at(location):
            continue
        actions.append(CandidateAction(
            kind=ActionKind.EXPAND,
            acting_asset_id='',
            acting_asset_name="Faction",
            source_location=location,
            target_location=location,
            description=f"Expand influence on {_system_name(world, location)}",
        ))
    return actions


def generate_defend_actions(faction: Faction, world: WorldState, catalog) -> List[CandidateAction]:
    actions = []
    for location in _occupied_locations(faction):
        names = []
        for asset in faction.assets_at(location):
            definition = catalog.get(asset.definition_id)
            if definition is not None:
                names.append(definition.name)
        if not names:
            continue
        listed = ", ".join(names[:DEFEND_NAME_LIMIT])
        if len(names) > DEFEND_NAME_LIMIT:
            listed += "..."
        actions.append(CandidateAction(
            kind=ActionKind.DEFEND,
            acting_asset_id='',
            acting_asset_name="Garrison",
            source_location=location,
            description=f"Defend {listed} at {_system_name(world, location)}",
        ))
    return actions


def generate_all_actions(faction: Faction, world: WorldState, catalog,
                         oracle: Optional[RouteMovementOracle] = None) -> List[CandidateAction]:
    """Every candidate for the faction: move, attack, expand, defend"""
    if oracle is None:
        oracle = RouteMovementOracle(world.systems)

    actions: List[CandidateAction] = []
    actions.extend(generate_move_actions(faction, world, catalog, oracle))
    actions.extend(generate_attack_actions(faction, world, catalog))
    actions.extend(generate_expand_actions(faction, world))
    actions.extend(generate_defend_actions(faction, world, catalog))

    logger.debug(f"🔍 {faction.name}: generated {len(actions)} candidate actions")
    return actions
