"""
Sector Loader

Builds a WorldState from a JSON sector description:

    {
      "turn": 1,
      "systems": [{"id": "sol", "name": "Sol", "x": 0, "y": 0, "routes": ["tau"]}],
      "factions": [{
          "id": "red", "name": "Red Hand", "homeworld": "sol",
          "force": 4, "cunning": 2, "wealth": 3, "hp": 15, "max_hp": 15,
          "fac_creds": 10, "tags": ["Warlike"], "ai_controlled": true,
          "goal": {"type": "Military Conquest", "current": 0, "target": 4},
          "assets": [{"id": "r1", "definition_id": "force_1_militia_unit", "location": "sol", "hp": 4}]
      }]
    }

Missing numeric fields fall back to defaults; unknown tag or goal names raise
ValueError with the offending value.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .errors import UnknownSystemError
from .models import (
    Faction, FactionAsset, FactionAttributes, FactionTag, Goal, GoalProgress, GoalType, StarSystem, WorldState,
)

logger = logging.getLogger(__name__)


def _system_from_dict(data: dict) -> StarSystem:
    return StarSystem(
        id=data['id'],
        name=data.get('name', data['id']),
        x=int(data.get('x', 0)),
        y=int(data.get('y', 0)),
        tech_level=int(data.get('tech_level', 4)),
        population=int(data.get('population', 3)),
        routes=list(data.get('routes', [])),
    )


def _asset_from_dict(data: dict, catalog=None) -> FactionAsset:
    max_hp = data.get('max_hp')
    if max_hp is None and catalog is not None:
        definition = catalog.get(data['definition_id'])
        max_hp = definition.hp if definition else None
    hp = int(data.get('hp', max_hp or 1))
    return FactionAsset(
        id=data['id'],
        definition_id=data['definition_id'],
        location=data['location'],
        hp=hp,
        max_hp=int(max_hp if max_hp is not None else hp),
        stealthed=bool(data.get('stealthed', False)),
        purchased_turn=data.get('purchased_turn'),
    )


def _goal_from_dict(data: Optional[dict], faction_id: str) -> Optional[Goal]:
    if not data:
        return None
    goal_type = GoalType(data['type'])
    return Goal(
        id=data.get('id', f"{faction_id}-goal"),
        goal_type=goal_type,
        description=data.get('description', goal_type.value),
        progress=GoalProgress(current=int(data.get('current', 0)), target=int(data.get('target', 1))),
        difficulty=int(data.get('difficulty', 1)),
        is_completed=bool(data.get('completed', False)),
    )


def _faction_from_dict(data: dict, catalog=None) -> Faction:
    attributes = FactionAttributes(
        force=int(data.get('force', 1)),
        cunning=int(data.get('cunning', 1)),
        wealth=int(data.get('wealth', 1)),
        hp=int(data.get('hp', data.get('max_hp', 15))),
        max_hp=int(data.get('max_hp', 15)),
    )
    return Faction(
        id=data['id'],
        name=data.get('name', data['id']),
        homeworld=data['homeworld'],
        attributes=attributes,
        fac_creds=int(data.get('fac_creds', 0)),
        tags=[FactionTag(t) for t in data.get('tags', [])],
        assets=[_asset_from_dict(a, catalog) for a in data.get('assets', [])],
        goal=_goal_from_dict(data.get('goal'), data['id']),
        ai_controlled=bool(data.get('ai_controlled', True)),
        xp=int(data.get('xp', 0)),
    )


def _check_references(world: WorldState):
    known = {s.id for s in world.systems}
    for faction in world.factions:
        if faction.homeworld not in known:
            raise UnknownSystemError(faction.homeworld)
        for asset in faction.assets:
            if asset.location not in known:
                raise UnknownSystemError(asset.location)


def world_from_dict(data: dict, catalog=None) -> WorldState:
    """
    Build a WorldState; ``catalog`` fills in asset max HP when omitted.

    Raises UnknownSystemError when a homeworld or asset location names a
    system the sector doesn't list.
    """
    world = WorldState(
        factions=[_faction_from_dict(f, catalog) for f in data.get('factions', [])],
        systems=[_system_from_dict(s) for s in data.get('systems', [])],
        turn=int(data.get('turn', 1)),
    )
    _check_references(world)
    logger.info(f"✅ Loaded sector: {len(world.systems)} systems, {len(world.factions)} factions")
    return world


def load_world(path, catalog=None) -> WorldState:
    with open(Path(path), 'r', encoding='utf-8') as f:
        data = json.load(f)
    return world_from_dict(data, catalog)
