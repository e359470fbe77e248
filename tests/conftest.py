"""
Shared fixtures for the faction AI tests.

Tests use the real asset catalog shipped in faction_ai/data/assets.json and a
small line of star systems laid out one hex apart:

    sol (0,0) - tau (1,0) - vega (2,0) - rigel (3,0) - deneb (4,0)
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from faction_ai.asset_catalog import get_asset_catalog  # noqa: E402
from faction_ai.models import (  # noqa: E402
    Faction, FactionAsset, FactionAttributes, StarSystem, WorldState,
)

SYSTEM_IDS = ["sol", "tau", "vega", "rigel", "deneb"]


@pytest.fixture
def catalog():
    return get_asset_catalog()


@pytest.fixture
def systems():
    return [StarSystem(id=sid, name=sid.title(), x=i, y=0) for i, sid in enumerate(SYSTEM_IDS)]


@pytest.fixture
def make_asset(catalog):
    """make_asset(id, definition_id, location, hp=None) with max HP from the catalog"""
    def _make(asset_id, definition_id, location, hp=None, stealthed=False):
        definition = catalog.get(definition_id)
        max_hp = definition.hp if definition else (hp or 1)
        return FactionAsset(
            id=asset_id,
            definition_id=definition_id,
            location=location,
            hp=max_hp if hp is None else hp,
            max_hp=max_hp,
            stealthed=stealthed,
        )
    return _make


@pytest.fixture
def make_faction():
    """make_faction(id, homeworld, force=1, cunning=1, wealth=1, fac_creds=0, tags=None, assets=None)"""
    def _make(faction_id, homeworld, force=1, cunning=1, wealth=1, fac_creds=0,
              tags=None, assets=None, hp=15, max_hp=15, goal=None):
        return Faction(
            id=faction_id,
            name=faction_id.title(),
            homeworld=homeworld,
            attributes=FactionAttributes(force=force, cunning=cunning, wealth=wealth, hp=hp, max_hp=max_hp),
            fac_creds=fac_creds,
            tags=list(tags or []),
            assets=list(assets or []),
            goal=goal,
        )
    return _make


@pytest.fixture
def make_world(systems):
    def _make(*factions, turn=1):
        return WorldState(factions=list(factions), systems=systems, turn=turn)
    return _make
