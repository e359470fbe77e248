"""
Tests for sector_loader.py and asset_catalog.py

Run with: python -m pytest tests/test_sector_loader.py -v
"""

from pathlib import Path

import pytest

from faction_ai.asset_catalog import AssetCatalog
from faction_ai.errors import CatalogError, UnknownSystemError
from faction_ai.models import AssetCategory, FactionTag, GoalType
from faction_ai.sector_loader import load_world, world_from_dict

EXAMPLE_SECTOR = Path(__file__).parent.parent / "configs" / "sectors" / "example_sector.json"


def _sector(**faction_overrides):
    faction = {
        "id": "red", "homeworld": "sol", "force": 3, "tags": ["Warlike"],
        "assets": [{"id": "r1", "definition_id": "force_1_militia_unit", "location": "sol"}],
    }
    faction.update(faction_overrides)
    return {
        "turn": 4,
        "systems": [{"id": "sol", "x": 0, "y": 0}, {"id": "tau", "x": 1, "y": 0}],
        "factions": [faction],
    }


class TestWorldFromDict:
    """Tests for world_from_dict"""

    def test_defaults_and_catalog_hp(self, catalog):
        world = world_from_dict(_sector(), catalog)
        red = world.get_faction("red")
        assert world.turn == 4
        assert red.name == "red"
        assert red.attributes.force == 3
        assert red.attributes.wealth == 1
        assert red.tags == [FactionTag.WARLIKE]
        assert red.assets[0].max_hp == 4
        assert red.assets[0].hp == 4
        assert red.ai_controlled is True

    def test_goal_parsed(self, catalog):
        world = world_from_dict(_sector(goal={"type": "Military Conquest", "current": 1, "target": 4}), catalog)
        goal = world.get_faction("red").goal
        assert goal.goal_type == GoalType.MILITARY_CONQUEST
        assert goal.progress.current == 1
        assert goal.progress.target == 4

    def test_unknown_tag_rejected(self, catalog):
        with pytest.raises(ValueError):
            world_from_dict(_sector(tags=["Friendly"]), catalog)

    def test_unknown_asset_location_rejected(self, catalog):
        assets = [{"id": "r1", "definition_id": "force_1_militia_unit", "location": "nowhere"}]
        with pytest.raises(UnknownSystemError) as excinfo:
            world_from_dict(_sector(assets=assets), catalog)
        assert excinfo.value.system_id == "nowhere"

    def test_unknown_homeworld_rejected(self, catalog):
        with pytest.raises(UnknownSystemError):
            world_from_dict(_sector(homeworld="deneb", assets=[]), catalog)


class TestExampleSector:
    """Tests for the shipped example sector"""

    def test_loads(self, catalog):
        world = load_world(EXAMPLE_SECTOR, catalog)
        assert len(world.systems) == 5
        assert world.get_faction("red") is not None
        assert world.get_faction("blue") is not None

    def test_partial_hp_kept(self, catalog):
        world = load_world(EXAMPLE_SECTOR, catalog)
        militia = next(a for a in world.get_faction("red").assets if a.id == "red-2")
        assert militia.hp == 2
        assert militia.max_hp == 4


class TestAssetCatalog:
    """Tests for catalog loading"""

    def test_lookup(self, catalog):
        fleet = catalog.get("force_4_strike_fleet")
        assert fleet.category == AssetCategory.FORCE
        assert fleet.required_rating == 4
        assert fleet.attack.damage == "2d6"
        assert fleet.has_action is True

    def test_unknown_id_is_none(self, catalog):
        assert catalog.get("force_99_death_star") is None

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(CatalogError):
            AssetCatalog(tmp_path / "missing.json").load()

    def test_malformed_entry_skipped(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text('{"assets": ['
                        '{"id": "ok", "category": "Force", "type": "Military Unit"},'
                        '{"id": "bad", "category": "Charisma", "type": "Military Unit"}]}')
        catalog = AssetCatalog(path)
        assert [d.id for d in catalog.all()] == ["ok"]

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text("{not json")
        with pytest.raises(CatalogError):
            AssetCatalog(path).load()

    def test_from_definitions(self, catalog):
        small = AssetCatalog.from_definitions([catalog.get("force_1_militia_unit")])
        assert [d.id for d in small.all()] == ["force_1_militia_unit"]
        assert small.get("force_4_strike_fleet") is None
