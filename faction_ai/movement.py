"""
Movement

Which assets may move, how far, and where they can go.

Systems sit on an odd-row offset hex grid. A single movement step follows a
trade route or crosses into a neighbouring hex; an asset with range N may take
up to N steps.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import StarSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovementAbility:
    range: int
    cost_per_asset: int
    can_move_self: bool
    description: str


MOVEMENT_ABILITIES: Dict[str, MovementAbility] = {
    'cunning_1_smugglers': MovementAbility(2, 1, True, "Move Smugglers and one Special Forces unit up to 2 hexes"),
    'cunning_2_seductress': MovementAbility(1, 0, True, "Move Seductress to any world within 1 hex"),
    'cunning_3_covert_shipping': MovementAbility(3, 1, False, "Move one Special Forces asset within 3 hexes"),
    'cunning_6_covert_transit_net': MovementAbility(3, 0, False, "Move any Special Forces assets within 3 hexes"),
    'force_2_heavy_drop_assets': MovementAbility(1, 1, True, "Move any non-Starship assets to a world within 1 hex"),
    'force_4_beachhead_landers': MovementAbility(1, 1, True, "Move any assets to a world within 1 hex"),
    'force_4_extended_theater': MovementAbility(2, 1, True, "Move one non-Starship asset within 2 hexes"),
    'force_4_strike_fleet': MovementAbility(1, 0, True, "Move Strike Fleet to a world within 1 hex"),
    'force_5_blockade_fleet': MovementAbility(1, 0, True, "Move Blockade Fleet to a world within 1 hex"),
    'force_7_deep_strike_landers': MovementAbility(3, 2, True, "Move one non-Starship asset within 3 hexes"),
    'force_7_space_marines': MovementAbility(1, 0, True, "Move Space Marines to a world within 1 hex"),
    'force_8_capital_fleet': MovementAbility(3, 0, True, "Move Capital Fleet to a world within 3 hexes"),
    'wealth_2_freighter_contract': MovementAbility(2, 1, True, "Move one non-Force asset within 2 hexes"),
    'wealth_2_surveyors': MovementAbility(2, 0, True, "Move Surveyors to a world within 2 hexes"),
    'wealth_3_mercenaries': MovementAbility(1, 0, True, "Move Mercenaries to a world within 1 hex"),
    'wealth_4_shipping_combine': MovementAbility(2, 1, True, "Move any non-Force assets within 2 hexes"),
    'wealth_5_blockade_runners': MovementAbility(3, 2, True, "Move Blockade Runners or one Military Unit within 3 hexes"),
    'wealth_7_transit_web': MovementAbility(3, 1, False, "Move any non-Starship Cunning or Wealth assets within 3 hexes"),
    'wealth_8_scavenger_fleet': MovementAbility(3, 0, True, "Move Scavenger Fleet to a world within 3 hexes"),
}

DEFAULT_MOVE_RANGE = 1


def get_movement_ability(definition_id: str) -> Optional[MovementAbility]:
    return MOVEMENT_ABILITIES.get(definition_id)


def movement_range(definition_id: str) -> int:
    """Range for an asset moving itself; everything else steps one hex"""
    ability = MOVEMENT_ABILITIES.get(definition_id)
    if ability and ability.can_move_self:
        return ability.range
    return DEFAULT_MOVE_RANGE


# =============================================================================
# HEX GEOMETRY
# =============================================================================

def _offset_to_cube(x: int, y: int) -> Tuple[int, int, int]:
    q = x - (y - (y & 1)) // 2
    r = y
    return q, r, -q - r


def hex_distance(a: StarSystem, b: StarSystem) -> int:
    """Hex distance between two systems on the odd-r offset grid"""
    aq, ar, as_ = _offset_to_cube(a.x, a.y)
    bq, br, bs = _offset_to_cube(b.x, b.y)
    return max(abs(aq - bq), abs(ar - br), abs(as_ - bs))


# =============================================================================
# MOVEMENT ORACLE
# =============================================================================

class RouteMovementOracle:
    """
    Movement legality capability: reachable systems within a step range.

    Neighbours of a system are its route endpoints plus every system one hex
    away.
    """

    def __init__(self, systems: Iterable[StarSystem]):
        self.systems: Dict[str, StarSystem] = {s.id: s for s in systems}
        self._neighbours: Dict[str, Set[str]] = {}
        self._build()

    def _build(self):
        for system in self.systems.values():
            self._neighbours[system.id] = set(r for r in system.routes if r in self.systems)
        all_systems = list(self.systems.values())
        for i, a in enumerate(all_systems):
            for b in all_systems[i + 1:]:
                if hex_distance(a, b) == 1:
                    self._neighbours[a.id].add(b.id)
                    self._neighbours[b.id].add(a.id)
        # Routes are symmetric even if only one end lists them
        for system_id, neighbours in list(self._neighbours.items()):
            for other in neighbours:
                self._neighbours[other].add(system_id)

    def neighbours(self, system_id: str) -> Set[str]:
        return set(self._neighbours.get(system_id, set()))

    def reachable(self, system_id: str, max_range: int = DEFAULT_MOVE_RANGE) -> List[str]:
        """Systems reachable in 1..max_range steps, origin excluded, sorted by id"""
        if system_id not in self.systems or max_range <= 0:
            return []

        seen = {system_id: 0}
        queue = deque([system_id])
        while queue:
            current = queue.popleft()
            depth = seen[current]
            if depth >= max_range:
                continue
            for nxt in sorted(self._neighbours.get(current, ())):
                if nxt not in seen:
                    seen[nxt] = depth + 1
                    queue.append(nxt)

        del seen[system_id]
        return sorted(seen.keys())

    def distance(self, a_id: str, b_id: str) -> Optional[int]:
        a = self.systems.get(a_id)
        b = self.systems.get(b_id)
        if a is None or b is None:
            return None
        return hex_distance(a, b)
