"""
Threat Assessment

Scans rival assets around a faction's holdings and turns them into danger
levels, defence recommendations and retreat advice.

Scales:
- SystemThreatAssessment.danger_level is 0-10
- SectorThreatOverview.system_threats[...].overall_danger is 0-100
- SectorThreatOverview.overall_threat_level is 0-100
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .combat import expected_damage
from .models import AssetCategory, AssetDefinition, AssetType, Faction, FactionAsset, StarSystem, WorldState
from .movement import hex_distance

logger = logging.getLogger(__name__)

DANGER_CALIBRATION = 100.0
THREATENED_DANGER = 4.0


@dataclass
class AssetThreat:
    asset_id: str
    asset_name: str
    category: AssetCategory
    location: str
    distance: int
    threat_score: float
    can_attack: bool
    attack_damage: Optional[str] = None
    is_stealthed: bool = False


@dataclass
class FactionThreat:
    faction_id: str
    faction_name: str
    military_threat: float = 0.0
    covert_threat: float = 0.0
    economic_threat: float = 0.0
    visible_assets: List[AssetThreat] = field(default_factory=list)
    estimated_stealthed_assets: int = 0
    closest_asset_distance: int = -1
    assets_in_range: int = 0

    @property
    def total_threat(self) -> float:
        return self.military_threat + self.covert_threat + self.economic_threat


@dataclass
class SystemThreatAssessment:
    system_id: str
    system_name: str
    danger_level: float = 0.0
    military_danger: float = 0.0
    covert_danger: float = 0.0
    economic_danger: float = 0.0
    faction_threats: List[FactionThreat] = field(default_factory=list)
    immediate_threats: List[AssetThreat] = field(default_factory=list)
    recommended_defense_level: str = "none"
    should_retreat: bool = False


@dataclass
class SystemThreatInfo:
    system_id: str
    overall_danger: float = 0.0
    military_danger: float = 0.0
    covert_danger: float = 0.0
    economic_danger: float = 0.0


@dataclass
class SectorThreatOverview:
    faction_id: str
    primary_threat: Optional[FactionThreat] = None
    threatened_systems: List[str] = field(default_factory=list)
    safe_systems: List[str] = field(default_factory=list)
    overall_threat_level: float = 0.0
    recommended_posture: str = "balanced"
    system_threats: Dict[str, SystemThreatInfo] = field(default_factory=dict)

    def danger_at(self, system_id: str) -> Optional[float]:
        info = self.system_threats.get(system_id)
        return info.overall_danger if info else None


@dataclass
class RetreatAdvice:
    should_retreat: bool
    reason: str
    urgency: str  # low / medium / high / critical


# =============================================================================
# SCORING
# =============================================================================

def asset_threat_score(asset: FactionAsset, definition: AssetDefinition, distance: int) -> float:
    score = definition.required_rating * 3 + asset.hp * 0.5

    if definition.attack:
        score += 5 + expected_damage(definition.attack.damage)
    if definition.counterattack:
        score += 2

    score *= max(0.2, 1 - distance * 0.2)
    if asset.stealthed:
        score *= 0.7
    return score * asset.hp_ratio


def faction_threat(enemy: Faction, reference: StarSystem, world: WorldState, catalog) -> FactionThreat:
    systems = world.system_index
    threat = FactionThreat(faction_id=enemy.id, faction_name=enemy.name)
    closest = None

    for asset in enemy.assets:
        definition = catalog.get(asset.definition_id)
        asset_system = systems.get(asset.location)
        if definition is None or asset_system is None:
            continue

        distance = hex_distance(asset_system, reference)
        if closest is None or distance < closest:
            closest = distance
        if distance <= 2:
            threat.assets_in_range += 1

        score = asset_threat_score(asset, definition, distance)
        if not asset.stealthed:
            threat.visible_assets.append(AssetThreat(
                asset_id=asset.id,
                asset_name=definition.name,
                category=definition.category,
                location=asset.location,
                distance=distance,
                threat_score=score,
                can_attack=definition.attack is not None,
                attack_damage=definition.attack.damage if definition.attack else None,
            ))

        if definition.category == AssetCategory.FORCE:
            threat.military_threat += score
        elif definition.category == AssetCategory.CUNNING:
            threat.covert_threat += score
        else:
            threat.economic_threat += score

    threat.military_threat += enemy.attributes.force * 2
    threat.covert_threat += enemy.attributes.cunning * 2
    threat.economic_threat += enemy.attributes.wealth * 2
    threat.estimated_stealthed_assets = enemy.attributes.cunning // 2
    threat.closest_asset_distance = closest if closest is not None else -1
    return threat


def _defense_level(danger: float) -> str:
    if danger < 1:
        return "none"
    if danger < 3:
        return "minimal"
    if danger < 5:
        return "moderate"
    if danger < 7:
        return "heavy"
    return "critical"


def assess_system_threat(system_id: str, faction_id: str, world: WorldState, catalog) -> SystemThreatAssessment:
    system = world.get_system(system_id)
    if system is None:
        return SystemThreatAssessment(system_id=system_id, system_name="Unknown")

    assessment = SystemThreatAssessment(system_id=system_id, system_name=system.name)
    military = covert = economic = 0.0

    for enemy in world.rivals_of(faction_id):
        threat = faction_threat(enemy, system, world, catalog)
        assessment.faction_threats.append(threat)
        military += threat.military_threat
        covert += threat.covert_threat
        economic += threat.economic_threat
        assessment.immediate_threats.extend(
            a for a in threat.visible_assets if a.distance <= 1 and a.can_attack)

    assessment.military_danger = min(10.0, military / DANGER_CALIBRATION * 10)
    assessment.covert_danger = min(10.0, covert / DANGER_CALIBRATION * 10)
    assessment.economic_danger = min(10.0, economic / DANGER_CALIBRATION * 10)
    assessment.danger_level = (assessment.military_danger * 0.5
                               + assessment.covert_danger * 0.3
                               + assessment.economic_danger * 0.2)
    assessment.recommended_defense_level = _defense_level(assessment.danger_level)

    immediate_total = sum(t.threat_score for t in assessment.immediate_threats)
    assessment.should_retreat = len(assessment.immediate_threats) >= 3 or immediate_total > 50
    return assessment


def generate_sector_threat_overview(faction_id: str, world: WorldState, catalog) -> SectorThreatOverview:
    """Threat picture over every system the faction occupies plus its homeworld"""
    overview = SectorThreatOverview(faction_id=faction_id)
    faction = world.get_faction(faction_id)
    if faction is None:
        return overview

    occupied = [faction.homeworld]
    for asset in faction.assets:
        if asset.location not in occupied:
            occupied.append(asset.location)

    total_danger = 0.0
    for system_id in occupied:
        assessment = assess_system_threat(system_id, faction_id, world, catalog)
        total_danger += assessment.danger_level
        overview.system_threats[system_id] = SystemThreatInfo(
            system_id=system_id,
            overall_danger=assessment.danger_level * 10,
            military_danger=assessment.military_danger * 10,
            covert_danger=assessment.covert_danger * 10,
            economic_danger=assessment.economic_danger * 10,
        )
        if assessment.danger_level >= THREATENED_DANGER:
            overview.threatened_systems.append(system_id)
        else:
            overview.safe_systems.append(system_id)

    overview.overall_threat_level = total_danger / len(occupied) * 10

    homeworld = world.get_system(faction.homeworld)
    if homeworld is not None:
        best = 0.0
        for enemy in world.rivals_of(faction_id):
            threat = faction_threat(enemy, homeworld, world, catalog)
            if threat.total_threat > best:
                best = threat.total_threat
                overview.primary_threat = threat

    strength = faction.attributes.total
    if overview.primary_threat is not None and strength > 0:
        ratio = overview.primary_threat.total_threat / (strength * 5)
    else:
        ratio = 0.0

    if ratio > 1.5:
        overview.recommended_posture = "turtle"
    elif ratio > 1:
        overview.recommended_posture = "defensive"
    elif ratio > 0.5:
        overview.recommended_posture = "balanced"
    else:
        overview.recommended_posture = "aggressive"

    logger.debug(f"Threat overview for {faction.name}: level={overview.overall_threat_level:.1f}, "
                 f"posture={overview.recommended_posture}")
    return overview


def calculate_defensive_strength(system_id: str, faction: Faction, world: WorldState, catalog) -> float:
    systems = world.system_index
    reference = systems.get(system_id)
    if reference is None:
        return 0.0

    strength = 0.0
    for asset in faction.assets:
        definition = catalog.get(asset.definition_id)
        asset_system = systems.get(asset.location)
        if definition is None or asset_system is None:
            continue
        distance = hex_distance(asset_system, reference)
        if distance > 1:
            continue

        value = asset.hp + expected_damage(definition.counterattack)
        if definition.asset_type in (AssetType.FACILITY, AssetType.LOGISTICS_FACILITY):
            value *= 1.2
        if distance == 1:
            value *= 0.5
        strength += value

    if system_id == faction.homeworld:
        strength *= 1.3
    return strength


def should_consider_retreat(system_id: str, faction: Faction, world: WorldState, catalog) -> RetreatAdvice:
    assessment = assess_system_threat(system_id, faction.id, world, catalog)
    defense = calculate_defensive_strength(system_id, faction, world, catalog)
    threat_sum = sum(t.threat_score for t in assessment.immediate_threats)

    # No immediate threat is never a reason to run, even with nothing defending
    if threat_sum <= 0:
        ratio = 0.0
    elif defense > 0:
        ratio = threat_sum / defense
    else:
        ratio = float('inf')

    if ratio > 3:
        return RetreatAdvice(True, "Overwhelming enemy force - retreat recommended", "critical")
    if ratio > 2:
        return RetreatAdvice(True, "Significant enemy advantage - retreat advised", "high")
    if ratio > 1.5:
        return RetreatAdvice(assessment.danger_level > 6,
                             "Enemy has advantage - consider retreat if high value assets at risk", "medium")
    if ratio > 1:
        return RetreatAdvice(False, "Slight enemy advantage - hold position with caution", "low")
    return RetreatAdvice(False, "Defensive position is adequate", "low")
