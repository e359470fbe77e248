"""
Asset Catalog

Loads the SWN faction asset definitions from JSON and provides lookup by
definition id. This is the "asset catalog lookup" capability the decision
components consume; any object with a compatible ``get(id)`` works in its place.

Lookups return None for unknown ids. Callers drop whatever referenced the
missing definition instead of failing.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import CatalogError
from .models import AssetCategory, AssetDefinition, AssetType, AttackPattern

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "assets.json"


class AssetCatalog:
    """
    Loads and provides access to asset definitions.
    """

    def __init__(self, catalog_path: Optional[Path] = None):
        self.catalog_path = Path(catalog_path) if catalog_path else DEFAULT_CATALOG_PATH
        self.definitions: Dict[str, AssetDefinition] = {}
        self._loaded = False

    @classmethod
    def from_definitions(cls, definitions: List[AssetDefinition]) -> "AssetCatalog":
        """Build a catalog from already constructed definitions (tests, tools)."""
        catalog = cls()
        catalog.definitions = {d.id: d for d in definitions}
        catalog._loaded = True
        return catalog

    def load(self):
        """Load all definitions from the JSON file"""
        if self._loaded:
            logger.debug("Asset catalog already loaded, skipping")
            return

        if not self.catalog_path.exists():
            raise CatalogError(f"Asset catalog not found at {self.catalog_path}")

        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogError(f"Invalid JSON in asset catalog {self.catalog_path}: {e}") from e

        for entry in data.get('assets', []):
            definition = self._parse_definition(entry)
            if definition:
                self.definitions[definition.id] = definition

        self._loaded = True
        logger.info(f"✅ Loaded {len(self.definitions)} asset definitions")

    def _parse_definition(self, entry: dict) -> Optional[AssetDefinition]:
        """Parse a single definition; malformed entries are skipped"""
        asset_id = entry.get('id', '')
        if not asset_id:
            return None

        try:
            attack = None
            attack_data = entry.get('attack')
            if attack_data:
                attack = AttackPattern(
                    attacker_attribute=AssetCategory(attack_data['attacker']),
                    defender_attribute=AssetCategory(attack_data['defender']),
                    damage=attack_data.get('damage', 'special'),
                )

            flags = entry.get('flags', '')
            return AssetDefinition(
                id=asset_id,
                name=entry.get('name', asset_id),
                category=AssetCategory(entry['category']),
                required_rating=int(entry.get('rating', 1)),
                hp=int(entry.get('hp', 1)),
                cost=int(entry.get('cost', 0)),
                tech_level=int(entry.get('tech_level', 0)),
                asset_type=AssetType(entry['type']),
                attack=attack,
                counterattack=entry.get('counterattack'),
                maintenance=int(entry.get('maintenance', 0)),
                has_action='A' in flags,
                has_special='S' in flags,
                requires_permission='P' in flags,
                purchasable=bool(entry.get('purchasable', True)),
                description=entry.get('description', ''),
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"⚠️ Skipping malformed asset definition {asset_id}: {e}")
            return None

    def get(self, definition_id: str) -> Optional[AssetDefinition]:
        if not self._loaded:
            self.load()
        return self.definitions.get(definition_id)

    def all(self) -> List[AssetDefinition]:
        if not self._loaded:
            self.load()
        return list(self.definitions.values())

    def purchasable(self) -> List[AssetDefinition]:
        return [d for d in self.all() if d.purchasable]


# Global catalog instance
_catalog: Optional[AssetCatalog] = None


def get_asset_catalog() -> AssetCatalog:
    """Get the global asset catalog, loading it on first use"""
    global _catalog
    if _catalog is None:
        _catalog = AssetCatalog()
        _catalog.load()
    return _catalog
