"""
Difficulty Scaler

Post-processes scored actions according to the difficulty tier:
- Easy: bounded random noise on every score (the only tier with randomness)
- Normal: scores pass through unchanged
- Hard: every attack goes through the combat predictor; losing attacks are penalized
- Expert: like hard, but "avoid" attacks are dropped entirely, and a retreat
  check pushes damaged assets out of systems where they are likely to die

Noise comes from an injected numpy Generator so tests can seed it.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

import numpy as np

from .combat import CombatOddsOracle
from .evaluators.base import ScoredAction
from .evaluators.utility_scorer import ActionScoringResult
from .models import ActionKind, AssetDefinition, Difficulty, Faction, FactionAsset, WorldState
from .randomness import make_rng
from .strategy_config import get_config

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

EASY_NOISE_RANGE = 30.0
AVOID_PENALTY = -50.0
RISKY_PENALTY = -25.0
RISKY_NET_VALUE = -10.0
MAX_FAVORABILITY_BONUS = 30.0
DEATH_PENALTY_PER_COST = 5.0
RETREAT_RISK_RATIO = 0.5
RETREAT_PRIORITY_BONUS = 100.0

# level -> (min win probability, damage weight, survival weight)
TIER_DEFAULTS = {
    Difficulty.EASY: (0.0, 1.0, 1.0),
    Difficulty.NORMAL: (0.0, 1.0, 1.0),
    Difficulty.HARD: (0.4, 1.2, 1.5),
    Difficulty.EXPERT: (0.5, 1.5, 2.0),
}


@dataclass
class DifficultyTuning:
    level: Difficulty = Difficulty.NORMAL
    easy_noise_range: float = 0.0
    min_win_probability: float = 0.0
    damage_weight: float = 1.0
    survival_weight: float = 1.0
    avoid_penalty: float = AVOID_PENALTY
    risky_penalty: float = RISKY_PENALTY
    retreat_risk_ratio: float = RETREAT_RISK_RATIO
    retreat_priority_bonus: float = RETREAT_PRIORITY_BONUS

    @classmethod
    def from_dict(cls, level: Difficulty, data: dict) -> "DifficultyTuning":
        min_win, damage_weight, survival_weight = TIER_DEFAULTS[level]
        prefix = level.value
        if level in (Difficulty.HARD, Difficulty.EXPERT):
            min_win = data.get(f'{prefix}_min_win_probability', min_win)
            damage_weight = data.get(f'{prefix}_damage_weight', damage_weight)
            survival_weight = data.get(f'{prefix}_survival_weight', survival_weight)
        return cls(
            level=level,
            easy_noise_range=data.get('easy_noise_range', EASY_NOISE_RANGE) if level == Difficulty.EASY else 0.0,
            min_win_probability=min_win,
            damage_weight=damage_weight,
            survival_weight=survival_weight,
            avoid_penalty=data.get('avoid_penalty', AVOID_PENALTY),
            risky_penalty=data.get('risky_penalty', RISKY_PENALTY),
            retreat_risk_ratio=data.get('retreat_risk_ratio', RETREAT_RISK_RATIO),
            retreat_priority_bonus=data.get('retreat_priority_bonus', RETREAT_PRIORITY_BONUS),
        )


def get_difficulty_tuning(level) -> DifficultyTuning:
    return DifficultyTuning.from_dict(Difficulty.parse(level), get_config().get_section('difficulty'))


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class CombatPrediction:
    win_probability: float
    expected_damage_dealt: float
    expected_damage_taken: float
    net_expected_value: float
    recommendation: str  # attack / risky / avoid
    reasoning: str


@dataclass
class AttackEvaluation:
    action: ScoredAction
    prediction: CombatPrediction
    original_score: float
    adjusted_score: float
    adjustment: float
    reasoning: str


@dataclass
class RetreatCheck:
    system_id: str
    should_retreat: bool
    loss_ratio: float
    reasoning: str


@dataclass
class DifficultyAdjustedResult:
    original: ActionScoringResult
    adjusted_actions: List[ScoredAction] = field(default_factory=list)
    best_action: Optional[ScoredAction] = None
    difficulty: Difficulty = Difficulty.NORMAL
    evaluations: List[AttackEvaluation] = field(default_factory=list)
    excluded: List[ScoredAction] = field(default_factory=list)
    retreat_checks: List[RetreatCheck] = field(default_factory=list)
    flagged_for_retreat: List[str] = field(default_factory=list)  # asset ids
    reasoning: str = ""

    def actions_of_kind(self, kind: ActionKind) -> List[ScoredAction]:
        return [a for a in self.adjusted_actions if a.kind == kind]


# =============================================================================
# NOISE (easy)
# =============================================================================

def add_noise_to_score(score: float, noise_range: float, rng: np.random.Generator) -> float:
    if noise_range <= 0:
        return score
    return max(0.0, score + float(rng.uniform(-noise_range, noise_range)))


def apply_easy_mode_noise(actions: List[ScoredAction], noise_range: float,
                          rng: np.random.Generator) -> List[ScoredAction]:
    noisy = []
    for scored in actions:
        copy = replace(scored, reasoning=list(scored.reasoning))
        copy.score = add_noise_to_score(scored.score, noise_range, rng)
        copy.reasoning.append("[Easy mode noise applied]")
        noisy.append(copy)
    return noisy


# =============================================================================
# COMBAT PREDICTION (hard / expert)
# =============================================================================

def predict_combat_outcome(attacking_faction: Faction, attacking_asset: FactionAsset,
                           attacking_def: AssetDefinition, target_faction: Faction,
                           target_def: AssetDefinition, tuning: DifficultyTuning,
                           oracle: Optional[CombatOddsOracle] = None) -> CombatPrediction:
    """
    Estimate an attack's outcome.

    net value = dealt * win * damage_weight - taken * survival_weight - death penalty,
    where taken is the counterattack scaled by the chance of losing the roll.
    """
    oracle = oracle or CombatOddsOracle()
    pattern = attacking_def.attack
    if pattern is None:
        return CombatPrediction(0.0, 0.0, 0.0, -100.0, "avoid", "Asset cannot attack")

    attacker_value = attacking_faction.attributes.rating(pattern.attacker_attribute)
    defender_value = target_faction.attributes.rating(pattern.defender_attribute)
    win = oracle.attack_odds(attacker_value, defender_value)
    reasons = [f"Win probability: {win * 100:.0f}%"]

    dealt = oracle.expected_damage(pattern.damage)
    reasons.append(f"Expected damage dealt: {dealt:.1f}")

    taken = oracle.expected_damage(target_def.counterattack) * (1 - win) if target_def.counterattack else 0.0
    if taken > 0:
        reasons.append(f"Expected damage taken: {taken:.1f}")

    damage_value = dealt * win * tuning.damage_weight
    survival_cost = taken * tuning.survival_weight
    death_risk = (1 - win) if taken >= attacking_asset.hp else 0.0
    death_penalty = death_risk * attacking_def.cost * DEATH_PENALTY_PER_COST
    net = damage_value - survival_cost - death_penalty

    if win < tuning.min_win_probability:
        recommendation = "avoid"
        reasons.append(f"Below {tuning.min_win_probability * 100:.0f}% threshold")
    elif net < RISKY_NET_VALUE:
        recommendation = "risky"
        reasons.append("Unfavorable expected outcome")
    else:
        recommendation = "attack"
        reasons.append("Favorable expected outcome")

    return CombatPrediction(win, dealt, taken, net, recommendation, ". ".join(reasons))


def evaluate_attack(scored: ScoredAction, faction: Faction, world: WorldState, catalog,
                    tuning: DifficultyTuning, oracle: Optional[CombatOddsOracle] = None) -> AttackEvaluation:
    action = scored.action
    if action.kind != ActionKind.ATTACK:
        prediction = CombatPrediction(1.0, 0.0, 0.0, 0.0, "attack", "Non-combat action")
        return AttackEvaluation(scored, prediction, scored.score, scored.score, 0.0,
                                "Non-combat action - no adjustment")

    attacker = faction.get_asset(action.acting_asset_id)
    attacker_def = catalog.get(attacker.definition_id) if attacker else None
    if attacker is None or attacker_def is None:
        prediction = CombatPrediction(0.0, 0.0, 0.0, -100.0, "avoid", "Invalid attacker")
        return AttackEvaluation(scored, prediction, scored.score, 0.0, -scored.score,
                                "Invalid attacker - score zeroed")

    target_faction = world.get_faction(action.target_faction_id) if action.target_faction_id else None
    target = target_faction.get_asset(action.target_asset_id) if target_faction else None
    target_def = catalog.get(target.definition_id) if target else None
    if target_faction is None or target is None or target_def is None:
        prediction = CombatPrediction(0.0, 0.0, 0.0, -100.0, "avoid", "Invalid target")
        return AttackEvaluation(scored, prediction, scored.score, 0.0, -scored.score,
                                "Invalid target - score zeroed")

    prediction = predict_combat_outcome(faction, attacker, attacker_def, target_faction, target_def,
                                        tuning, oracle)
    if prediction.recommendation == "avoid":
        adjustment = tuning.avoid_penalty
    elif prediction.recommendation == "risky":
        adjustment = tuning.risky_penalty
    else:
        adjustment = min(MAX_FAVORABILITY_BONUS, prediction.net_expected_value * 2)
    adjusted = max(0.0, scored.score + adjustment)

    return AttackEvaluation(scored, prediction, scored.score, adjusted, adjustment,
                            f"{prediction.reasoning}. Adjustment: {adjustment:+.0f}")


def should_avoid_attack(evaluation: AttackEvaluation, level) -> bool:
    if Difficulty.parse(level) in (Difficulty.EASY, Difficulty.NORMAL):
        return False
    return evaluation.prediction.recommendation == "avoid"


# =============================================================================
# RETREAT (expert)
# =============================================================================

def analyze_retreat_necessity(faction: Faction, world: WorldState, system_id: str, catalog,
                              tuning: DifficultyTuning,
                              oracle: Optional[CombatOddsOracle] = None) -> RetreatCheck:
    """Share of our asset value at a system that visible enemy attackers are expected to kill"""
    if tuning.level in (Difficulty.EASY, Difficulty.NORMAL):
        return RetreatCheck(system_id, False, 0.0, "Easy/Normal AI does not retreat strategically")

    ours = faction.assets_at(system_id)
    if not ours:
        return RetreatCheck(system_id, False, 0.0, "No assets at location")

    enemies = []
    for rival in world.rivals_of(faction.id):
        for asset in rival.assets_at(system_id):
            if asset.stealthed:
                continue
            definition = catalog.get(asset.definition_id)
            if definition is not None and definition.attack is not None:
                enemies.append((rival, asset, definition))
    if not enemies:
        return RetreatCheck(system_id, False, 0.0, "No enemy attackers at location")

    death_risk = 0.0
    total_value = 0.0
    for asset in ours:
        definition = catalog.get(asset.definition_id)
        if definition is None:
            continue
        total_value += definition.cost
        for rival, enemy_asset, enemy_def in enemies:
            prediction = predict_combat_outcome(rival, enemy_asset, enemy_def, faction, definition,
                                                tuning, oracle)
            if prediction.expected_damage_dealt >= asset.hp:
                death_risk += definition.cost * prediction.win_probability

    ratio = death_risk / max(1.0, total_value)
    if ratio > tuning.retreat_risk_ratio:
        return RetreatCheck(system_id, True, ratio,
                            f"High expected losses ({ratio * 100:.0f}% of asset value at risk)")
    return RetreatCheck(system_id, False, ratio,
                        f"Acceptable risk level ({ratio * 100:.0f}% of asset value at risk)")


def _apply_retreat_priority(actions: List[ScoredAction], faction: Faction, checks: List[RetreatCheck],
                            tuning: DifficultyTuning) -> List[str]:
    """Boost moves that carry damaged assets out of doomed systems; returns flagged asset ids"""
    doomed = {c.system_id for c in checks if c.should_retreat}
    if not doomed:
        return []

    flagged = [a.id for a in faction.assets if a.location in doomed and a.hp < a.max_hp]
    for scored in actions:
        action = scored.action
        if action.kind != ActionKind.MOVE or action.acting_asset_id not in flagged:
            continue
        if action.target_location in doomed:
            continue
        scored.add_reasoning("[Retreat: relocating damaged asset]", tuning.retreat_priority_bonus)
    return flagged


# =============================================================================
# MAIN ENTRY
# =============================================================================

def apply_difficulty_scaling(result: ActionScoringResult, faction: Faction, world: WorldState, catalog,
                             level, rng: Optional[np.random.Generator] = None,
                             tuning: Optional[DifficultyTuning] = None,
                             oracle: Optional[CombatOddsOracle] = None) -> DifficultyAdjustedResult:
    """
    Adjust a scoring result for the difficulty tier.

    The input result is left untouched; adjusted copies are returned.
    """
    level = Difficulty.parse(level)
    tuning = tuning or get_difficulty_tuning(level)
    adjusted = DifficultyAdjustedResult(original=result, difficulty=level)
    actions = [replace(a, reasoning=list(a.reasoning)) for a in result.scored_actions]
    reasons = [f"Difficulty: {level.value}"]

    if level == Difficulty.EASY:
        actions = apply_easy_mode_noise(actions, tuning.easy_noise_range, rng or make_rng())
        reasons.append(f"Applied ±{tuning.easy_noise_range:.0f} noise")

    elif level == Difficulty.NORMAL:
        reasons.append("Standard scoring")

    else:
        kept = []
        for scored in actions:
            if scored.kind != ActionKind.ATTACK:
                kept.append(scored)
                continue
            evaluation = evaluate_attack(scored, faction, world, catalog, tuning, oracle)
            adjusted.evaluations.append(evaluation)
            scored.score = evaluation.adjusted_score
            scored.reasoning.append(f"[Minimax: {evaluation.prediction.recommendation}]")
            logger.debug(f"⚔️ {scored.action.description}: {evaluation.reasoning}")

            if level == Difficulty.EXPERT and evaluation.prediction.recommendation == "avoid":
                adjusted.excluded.append(scored)
            else:
                kept.append(scored)
        actions = kept

        avoided = sum(1 for e in adjusted.evaluations if e.prediction.recommendation == "avoid")
        reasons.append(f"Minimax evaluated {len(adjusted.evaluations)} attacks")
        if avoided:
            verb = "excluded" if level == Difficulty.EXPERT else "penalized"
            reasons.append(f"{avoided} attacks {verb} as unfavorable")

        if level == Difficulty.EXPERT:
            occupied = []
            for asset in faction.assets:
                if asset.location not in occupied:
                    occupied.append(asset.location)
            adjusted.retreat_checks = [
                analyze_retreat_necessity(faction, world, system_id, catalog, tuning, oracle)
                for system_id in occupied
            ]
            adjusted.flagged_for_retreat = _apply_retreat_priority(
                actions, faction, adjusted.retreat_checks, tuning)
            if adjusted.flagged_for_retreat:
                reasons.append(f"{len(adjusted.flagged_for_retreat)} damaged assets flagged for retreat")

    actions.sort(key=lambda a: (-a.score, a.order))
    adjusted.adjusted_actions = actions
    adjusted.best_action = actions[0] if actions else None
    adjusted.reasoning = ". ".join(reasons)

    logger.debug(f"{faction.name}: {adjusted.reasoning}")
    return adjusted

