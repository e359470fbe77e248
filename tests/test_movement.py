"""
Tests for movement.py

Run with: python -m pytest tests/test_movement.py -v
"""

from faction_ai.models import StarSystem
from faction_ai.movement import RouteMovementOracle, hex_distance, movement_range


def _sys(sid, x, y, routes=None):
    return StarSystem(id=sid, name=sid, x=x, y=y, routes=list(routes or []))


class TestHexDistance:
    """Tests for odd-row offset hex distance"""

    def test_same_row(self):
        assert hex_distance(_sys("a", 0, 0), _sys("b", 3, 0)) == 3

    def test_diagonal_neighbour(self):
        assert hex_distance(_sys("a", 0, 0), _sys("b", 0, 1)) == 1

    def test_two_rows_down(self):
        assert hex_distance(_sys("a", 0, 0), _sys("b", 1, 2)) == 2

    def test_zero(self):
        assert hex_distance(_sys("a", 2, 3), _sys("b", 2, 3)) == 0


class TestMovementRange:
    """Tests for movement_range"""

    def test_self_moving_asset(self):
        assert movement_range("force_8_capital_fleet") == 3

    def test_default_single_step(self):
        assert movement_range("force_1_militia_unit") == 1

    def test_carrier_only_ability(self):
        """Covert Shipping moves other assets, not itself"""
        assert movement_range("cunning_3_covert_shipping") == 1


class TestRouteMovementOracle:
    """Tests for reachability"""

    def test_adjacent_hexes(self, systems):
        oracle = RouteMovementOracle(systems)
        assert oracle.reachable("sol", 1) == ["tau"]
        assert oracle.reachable("tau", 1) == ["sol", "vega"]

    def test_range_two(self, systems):
        assert RouteMovementOracle(systems).reachable("sol", 2) == ["tau", "vega"]

    def test_routes_bridge_distance(self):
        """A one-sided trade route links two far systems both ways"""
        systems = [_sys("a", 0, 0, routes=["z"]), _sys("z", 9, 9)]
        oracle = RouteMovementOracle(systems)
        assert oracle.reachable("a", 1) == ["z"]
        assert oracle.reachable("z", 1) == ["a"]

    def test_unknown_origin(self, systems):
        assert RouteMovementOracle(systems).reachable("nowhere", 3) == []
