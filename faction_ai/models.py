"""
Domain Model

Core types shared by every decision component: factions, assets, asset
definitions, star systems and the world snapshot the engine reads.

The decision pipeline never mutates these objects. Scoring and planning read a
snapshot; mutation happens only through a MutationSink (see turn_controller).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================

class AssetCategory(Enum):
    """Faction attribute an asset belongs to"""
    FORCE = "Force"
    CUNNING = "Cunning"
    WEALTH = "Wealth"


class AssetType(Enum):
    """Asset type line from the SWN asset tables"""
    MILITARY_UNIT = "Military Unit"
    SPECIAL_FORCES = "Special Forces"
    STARSHIP = "Starship"
    FACILITY = "Facility"
    LOGISTICS_FACILITY = "Logistics Facility"
    TACTIC = "Tactic"
    SPECIAL = "Special"


class FactionTag(Enum):
    """Faction personality tags"""
    COLONISTS = "Colonists"
    DEEP_ROOTED = "Deep Rooted"
    EUGENICS_CULT = "Eugenics Cult"
    EXCHANGE_CONSULATE = "Exchange Consulate"
    FANATICAL = "Fanatical"
    IMPERIALISTS = "Imperialists"
    MACHIAVELLIAN = "Machiavellian"
    MERCENARY_GROUP = "Mercenary Group"
    PERIMETER_AGENCY = "Perimeter Agency"
    PIRATES = "Pirates"
    PLANETARY_GOVERNMENT = "Planetary Government"
    PLUTOCRATIC = "Plutocratic"
    PRECEPTOR_ARCHIVE = "Preceptor Archive"
    PSYCHIC_ACADEMY = "Psychic Academy"
    SAVAGE = "Savage"
    SCAVENGERS = "Scavengers"
    SECRETIVE = "Secretive"
    TECHNICAL_EXPERTISE = "Technical Expertise"
    THEOCRATIC = "Theocratic"
    WARLIKE = "Warlike"


class GoalType(Enum):
    """
    The fixed goal catalog.

    Declaration order is the catalog order used for tie-breaking.
    """
    MILITARY_CONQUEST = "Military Conquest"
    COMMERCIAL_EXPANSION = "Commercial Expansion"
    INTELLIGENCE_COUP = "Intelligence Coup"
    PLANETARY_SEIZURE = "Planetary Seizure"
    EXPAND_INFLUENCE = "Expand Influence"
    BLOOD_THE_ENEMY = "Blood the Enemy"
    PEACEABLE_KINGDOM = "Peaceable Kingdom"
    DESTROY_THE_FOE = "Destroy the Foe"
    INSIDE_ENEMY_TERRITORY = "Inside Enemy Territory"
    INVINCIBLE_VALOR = "Invincible Valor"
    WEALTH_OF_WORLDS = "Wealth of Worlds"


class StrategicFocus(Enum):
    MILITARY = "military"
    ECONOMIC = "economic"
    COVERT = "covert"
    EXPANSION = "expansion"
    DEFENSIVE = "defensive"
    BALANCED = "balanced"


class ActionKind(Enum):
    """The four turn action types a faction chooses between"""
    MOVE = "move"
    ATTACK = "attack"
    EXPAND = "expand"
    DEFEND = "defend"


class Difficulty(Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value) -> "Difficulty":
        """Accept an enum member or a name; 'medium' is an alias for normal."""
        if isinstance(value, Difficulty):
            return value
        text = str(value).strip().lower()
        if text == "medium":
            return cls.NORMAL
        return cls(text)


# =============================================================================
# ASSET DEFINITIONS (immutable catalog entries)
# =============================================================================

@dataclass(frozen=True)
class AttackPattern:
    attacker_attribute: AssetCategory
    defender_attribute: AssetCategory
    damage: str  # "1d6", "2d4+2", "special"


@dataclass(frozen=True)
class AssetDefinition:
    """Shared, immutable catalog entry for an asset"""
    id: str
    name: str
    category: AssetCategory
    required_rating: int
    hp: int
    cost: int
    tech_level: int
    asset_type: AssetType
    attack: Optional[AttackPattern] = None
    counterattack: Optional[str] = None  # damage expression
    maintenance: int = 0
    has_action: bool = False
    has_special: bool = False
    requires_permission: bool = False
    purchasable: bool = True
    description: str = ""


BASE_OF_INFLUENCE_ID = "base_of_influence"


# =============================================================================
# FACTIONS
# =============================================================================

@dataclass
class FactionAsset:
    """An owned asset instance"""
    id: str
    definition_id: str
    location: str  # system id
    hp: int
    max_hp: int
    stealthed: bool = False
    purchased_turn: Optional[int] = None

    @property
    def is_base(self) -> bool:
        return self.definition_id == BASE_OF_INFLUENCE_ID

    @property
    def damage(self) -> int:
        return max(0, self.max_hp - self.hp)

    @property
    def hp_ratio(self) -> float:
        return self.hp / self.max_hp if self.max_hp > 0 else 0.0


@dataclass
class FactionAttributes:
    force: int = 1
    cunning: int = 1
    wealth: int = 1
    hp: int = 15
    max_hp: int = 15

    def rating(self, category: AssetCategory) -> int:
        if category == AssetCategory.FORCE:
            return self.force
        if category == AssetCategory.CUNNING:
            return self.cunning
        return self.wealth

    @property
    def total(self) -> int:
        return self.force + self.cunning + self.wealth

    @property
    def hp_ratio(self) -> float:
        return self.hp / self.max_hp if self.max_hp > 0 else 0.0


@dataclass
class GoalProgress:
    current: int = 0
    target: int = 1
    metadata: Dict[str, object] = field(default_factory=dict)


@dataclass
class Goal:
    id: str
    goal_type: GoalType
    description: str
    progress: GoalProgress = field(default_factory=GoalProgress)
    difficulty: int = 1
    is_completed: bool = False


@dataclass
class Faction:
    id: str
    name: str
    homeworld: str
    attributes: FactionAttributes = field(default_factory=FactionAttributes)
    fac_creds: int = 0
    tags: List[FactionTag] = field(default_factory=list)
    assets: List[FactionAsset] = field(default_factory=list)
    goal: Optional[Goal] = None
    ai_controlled: bool = True
    xp: int = 0

    def assets_at(self, system_id: str) -> List[FactionAsset]:
        return [a for a in self.assets if a.location == system_id]

    def get_asset(self, asset_id: str) -> Optional[FactionAsset]:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    def has_base_at(self, system_id: str) -> bool:
        """Homeworld counts as an implicit base of influence."""
        if system_id == self.homeworld:
            return True
        return any(a.is_base and a.location == system_id for a in self.assets)

    @property
    def funds(self) -> int:
        return max(0, self.fac_creds)


# =============================================================================
# SECTOR
# =============================================================================

@dataclass
class StarSystem:
    id: str
    name: str
    x: int = 0
    y: int = 0
    tech_level: int = 4
    population: int = 3
    routes: List[str] = field(default_factory=list)  # connected system ids


@dataclass
class WorldState:
    """Snapshot of everything the engine reads"""
    factions: List[Faction] = field(default_factory=list)
    systems: List[StarSystem] = field(default_factory=list)
    turn: int = 1

    def get_faction(self, faction_id: str) -> Optional[Faction]:
        for faction in self.factions:
            if faction.id == faction_id:
                return faction
        return None

    def get_system(self, system_id: str) -> Optional[StarSystem]:
        for system in self.systems:
            if system.id == system_id:
                return system
        return None

    def rivals_of(self, faction_id: str) -> List[Faction]:
        return [f for f in self.factions if f.id != faction_id]

    @property
    def system_index(self) -> Dict[str, StarSystem]:
        return {s.id: s for s in self.systems}


@dataclass
class StrategicIntent:
    """Short-term stance derived each turn from the goal and faction state"""
    primary_focus: StrategicFocus = StrategicFocus.BALANCED
    aggression: float = 50.0
    target_faction_id: Optional[str] = None
    priority_systems: List[str] = field(default_factory=list)
