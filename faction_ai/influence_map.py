"""
Influence Map

Spatial control analysis. Every asset projects influence onto nearby systems
according to its type, rating, health and stealth; the faction with the most
influence in a system controls it.

Projection by asset type:
- Starships reach 2 hexes and weigh 1.2x
- Facilities and Logistics Facilities stay local and weigh 1.5x
- Military Units reach 1 hex and weigh 1.3x
- Special Forces reach 1 hex and weigh 0.8x
- Tactics stay local and weigh 0.5x
- A Base of Influence is a local anchor worth 10

Influence halves with every hex of distance. Homeworlds add a flat 5 for their
owner. Strategic value is reported on a 0-100 scale.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import (
    AssetCategory, AssetDefinition, AssetType, BASE_OF_INFLUENCE_ID, Faction,
    FactionAsset, StarSystem, WorldState,
)
from .movement import hex_distance

logger = logging.getLogger(__name__)

FALLOFF = 0.5
HOMEWORLD_INFLUENCE = 5.0
STEALTH_FACTOR = 0.3
UNOCCUPIED_THRESHOLD = 2.0
CONTESTED_LEVEL = 5
# TL5, population 6, six routes, controlled homeworld
STRATEGIC_VALUE_RAW_MAX = 40.0


@dataclass
class HexInfluence:
    system_id: str
    force: float = 0.0
    cunning: float = 0.0
    wealth: float = 0.0
    total: float = 0.0
    controlling_faction_id: Optional[str] = None
    contested_level: int = 0  # 0 = uncontested, 10 = dead even
    faction_influence: Dict[str, float] = field(default_factory=dict)
    strategic_value: float = 0.0


@dataclass
class InfluenceMap:
    """Influence from one faction's point of view"""
    faction_id: str
    hexes: Dict[str, HexInfluence] = field(default_factory=dict)
    friendly_controlled: List[str] = field(default_factory=list)
    enemy_controlled: List[str] = field(default_factory=list)
    contested: List[str] = field(default_factory=list)
    unoccupied: List[str] = field(default_factory=list)

    def get(self, system_id: str) -> Optional[HexInfluence]:
        return self.hexes.get(system_id)

    def influence_of(self, system_id: str, faction_id: str) -> float:
        hex_influence = self.hexes.get(system_id)
        if hex_influence is None:
            return 0.0
        return hex_influence.faction_influence.get(faction_id, 0.0)


def asset_projection(definition: AssetDefinition) -> Tuple[float, int]:
    """(base influence, range) for an asset definition"""
    base = definition.required_rating * 2.0
    projection_range = 1
    asset_type = definition.asset_type

    if asset_type == AssetType.STARSHIP:
        projection_range = 2
        base *= 1.2
    elif asset_type in (AssetType.FACILITY, AssetType.LOGISTICS_FACILITY):
        projection_range = 0
        base *= 1.5
    elif asset_type == AssetType.MILITARY_UNIT:
        base *= 1.3
    elif asset_type == AssetType.SPECIAL_FORCES:
        base *= 0.8
    elif asset_type == AssetType.TACTIC:
        projection_range = 0
        base *= 0.5

    if definition.id == BASE_OF_INFLUENCE_ID:
        projection_range = 0
        base = 10.0

    return base, projection_range


def asset_influence_on(asset: FactionAsset, definition: AssetDefinition,
                       asset_system: StarSystem, target_system: StarSystem) -> float:
    base, projection_range = asset_projection(definition)
    distance = hex_distance(asset_system, target_system)
    if distance > projection_range:
        return 0.0

    influence = base * (FALLOFF ** distance)
    influence *= asset.hp_ratio
    if asset.stealthed:
        influence *= STEALTH_FACTOR
    return influence


def calculate_influence_map(faction_id: str, world: WorldState, catalog) -> InfluenceMap:
    """Build the influence map for ``faction_id``; unknown definitions are skipped"""
    systems = world.system_index
    hexes = {s.id: HexInfluence(system_id=s.id) for s in world.systems}

    for faction in world.factions:
        for asset in faction.assets:
            definition = catalog.get(asset.definition_id)
            asset_system = systems.get(asset.location)
            if definition is None or asset_system is None:
                continue

            for target in world.systems:
                influence = asset_influence_on(asset, definition, asset_system, target)
                if influence <= 0:
                    continue
                hex_influence = hexes[target.id]
                if definition.category == AssetCategory.FORCE:
                    hex_influence.force += influence
                elif definition.category == AssetCategory.CUNNING:
                    hex_influence.cunning += influence
                else:
                    hex_influence.wealth += influence
                hex_influence.faction_influence[faction.id] = (
                    hex_influence.faction_influence.get(faction.id, 0.0) + influence)

        home = hexes.get(faction.homeworld)
        if home is not None:
            home.faction_influence[faction.id] = home.faction_influence.get(faction.id, 0.0) + HOMEWORLD_INFLUENCE

    influence_map = InfluenceMap(faction_id=faction_id, hexes=hexes)

    for system_id, hex_influence in hexes.items():
        hex_influence.total = hex_influence.force + hex_influence.cunning + hex_influence.wealth

        ranked = sorted(hex_influence.faction_influence.items(), key=lambda kv: -kv[1])
        if ranked and ranked[0][1] > 0:
            hex_influence.controlling_faction_id = ranked[0][0]
            if len(ranked) > 1 and ranked[1][1] > 0:
                hex_influence.contested_level = round(ranked[1][1] / ranked[0][1] * 10)

        if hex_influence.total < UNOCCUPIED_THRESHOLD:
            influence_map.unoccupied.append(system_id)
        elif hex_influence.contested_level >= CONTESTED_LEVEL:
            influence_map.contested.append(system_id)
        elif hex_influence.controlling_faction_id == faction_id:
            influence_map.friendly_controlled.append(system_id)
        else:
            influence_map.enemy_controlled.append(system_id)

    faction = world.get_faction(faction_id)
    if faction is not None:
        for system in world.systems:
            hexes[system.id].strategic_value = calculate_system_strategic_value(
                system, faction, influence_map, world)

    logger.debug(f"Influence map for {faction_id}: {len(influence_map.friendly_controlled)} friendly, "
                 f"{len(influence_map.enemy_controlled)} enemy, {len(influence_map.contested)} contested")
    return influence_map


def calculate_system_strategic_value(system: StarSystem, faction: Faction,
                                     influence_map: InfluenceMap, world: WorldState) -> float:
    """
    Strategic value of a system for ``faction`` on a 0-100 scale.

    Raw points come from tech level, population, route count, ownership and
    homeworld proximity, less a contest penalty; a best-case hub scores
    STRATEGIC_VALUE_RAW_MAX raw points.
    """
    hex_influence = influence_map.hexes.get(system.id)
    if hex_influence is None:
        return 0.0

    value = system.tech_level * 2.0 + system.population + len(system.routes) * 1.5
    if hex_influence.controlling_faction_id == faction.id:
        value += 5

    homeworld = world.get_system(faction.homeworld)
    if homeworld is not None:
        value += max(0, 10 - hex_distance(system, homeworld) * 2)

    value -= hex_influence.contested_level * 0.5
    return min(100.0, max(0.0, value / STRATEGIC_VALUE_RAW_MAX * 100.0))


def find_best_expansion_targets(influence_map: InfluenceMap, faction: Faction,
                                world: WorldState, limit: int = 5) -> List[StarSystem]:
    """Unoccupied or contested systems, best first"""
    homeworld = world.get_system(faction.homeworld)
    candidates = []
    for system_id in influence_map.unoccupied + influence_map.contested:
        system = world.get_system(system_id)
        hex_influence = influence_map.hexes.get(system_id)
        if system is None or hex_influence is None:
            continue

        distance = hex_distance(system, homeworld) if homeworld else 10
        controller = hex_influence.controlling_faction_id
        friendly = hex_influence.total if controller == faction.id else 0.0
        enemy = hex_influence.total if controller and controller != faction.id else 0.0
        candidates.append((friendly * 2 - enemy * 1.5 - distance * 0.5, system))

    candidates.sort(key=lambda c: -c[0])
    return [system for _, system in candidates[:limit]]
