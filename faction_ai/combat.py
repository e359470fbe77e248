"""
Combat Math

Damage-expression parsing, expected damage, attack odds and dice resolution.

SWN faction attacks are an opposed 1d10 + attribute contest. The attacker wins
when its total is higher, the defender counterattacks when its total is
higher, and a tie applies both. Odds are estimated with a smooth tanh curve
over the attribute difference; that is close enough for scoring and stays
deterministic.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .models import AssetDefinition, Faction

logger = logging.getLogger(__name__)

DAMAGE_PATTERN = re.compile(r'^(\d+)d(\d+)([+-]\d+)?$')

# Standard deviation of a single d10
D10_STDDEV = 2.87
ODDS_STEEPNESS = 0.8


# =============================================================================
# DAMAGE EXPRESSIONS
# =============================================================================

def parse_damage(expression: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """
    Parse "XdY+Z" into (count, sides, modifier).

    Flat integers parse as (0, 0, value). "special", "None" and empty input
    return None.
    """
    if not expression:
        return None
    text = expression.strip().lower().replace(' ', '')
    if text in ('special', 'none', '-'):
        return None
    match = DAMAGE_PATTERN.match(text)
    if match:
        count = int(match.group(1))
        sides = int(match.group(2))
        modifier = int(match.group(3)) if match.group(3) else 0
        return count, sides, modifier
    if text.lstrip('-').isdigit():
        return 0, 0, int(text)
    return None


def expected_damage(expression: Optional[str]) -> float:
    """Average damage of an expression; unparseable or special damage is 0"""
    parsed = parse_damage(expression)
    if parsed is None:
        return 0.0
    count, sides, modifier = parsed
    return max(0.0, count * (sides + 1) / 2.0 + modifier)


def roll_damage(expression: Optional[str], rng: np.random.Generator) -> int:
    parsed = parse_damage(expression)
    if parsed is None:
        return 0
    count, sides, modifier = parsed
    total = modifier
    if count and sides:
        total += int(rng.integers(1, sides + 1, size=count).sum())
    return max(0, total)


# =============================================================================
# ODDS
# =============================================================================

def calculate_attack_odds(attacker_value: int, defender_value: int) -> float:
    """Probability that 1d10+attacker beats 1d10+defender (smoothed)"""
    delta = attacker_value - defender_value
    z = delta / math.sqrt(2 * D10_STDDEV ** 2)
    odds = 0.5 * (1 + math.tanh(z * ODDS_STEEPNESS))
    return min(1.0, max(0.0, odds))


class CombatOddsOracle:
    """
    Default combat-odds capability: win probability and expected damage.

    Swap in another object with the same two methods to change the model.
    """

    def attack_odds(self, attacker_value: int, defender_value: int) -> float:
        return calculate_attack_odds(attacker_value, defender_value)

    def expected_damage(self, expression: Optional[str]) -> float:
        return expected_damage(expression)


# =============================================================================
# RESOLUTION
# =============================================================================

@dataclass
class AttackResult:
    attacker_roll: int
    defender_roll: int
    damage_to_defender: int = 0
    damage_to_attacker: int = 0

    @property
    def attacker_won(self) -> bool:
        return self.attacker_roll > self.defender_roll

    @property
    def tie(self) -> bool:
        return self.attacker_roll == self.defender_roll


def resolve_attack(attacker: Faction, attacker_def: AssetDefinition,
                   defender: Faction, defender_def: AssetDefinition,
                   rng: np.random.Generator) -> AttackResult:
    """
    Roll one attack. Damage is returned, not applied.

    An attacker definition without an attack pattern produces an empty result.
    """
    if attacker_def.attack is None:
        return AttackResult(attacker_roll=0, defender_roll=0)

    pattern = attacker_def.attack
    attacker_total = int(rng.integers(1, 11)) + attacker.attributes.rating(pattern.attacker_attribute)
    defender_total = int(rng.integers(1, 11)) + defender.attributes.rating(pattern.defender_attribute)
    result = AttackResult(attacker_roll=attacker_total, defender_roll=defender_total)

    if attacker_total >= defender_total:
        result.damage_to_defender = roll_damage(pattern.damage, rng)
    if attacker_total <= defender_total:
        result.damage_to_attacker = roll_damage(defender_def.counterattack, rng)

    logger.debug(f"⚔️ {attacker_def.name} ({attacker_total}) vs {defender_def.name} ({defender_total}): "
                 f"dealt {result.damage_to_defender}, took {result.damage_to_attacker}")
    return result
