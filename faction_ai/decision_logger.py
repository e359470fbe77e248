"""
Faction Decision Logger

Captures one JSON record per faction-turn decision: the faction, the
difficulty tier, the strategic intent and the queued actions with their
reasoning. Enables post-game analysis of why a faction did what it did.

Records go to a dedicated non-propagating logger so they never mix with the
main log.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from config import config

DECISION_LOG_NAME = "faction_decisions.log"

# Create dedicated decision logger
decision_logger = logging.getLogger("faction_decisions")
decision_logger.setLevel(logging.INFO)
decision_logger.propagate = False  # Don't propagate to root logger

# File handler for decision log
_file_handler: Optional[logging.FileHandler] = None


def decision_log_path() -> Path:
    return Path(config.LOG_DIR) / DECISION_LOG_NAME


def _ensure_handler():
    """Lazily initialize the file handler."""
    global _file_handler
    if _file_handler is None:
        config.ensure_dirs()
        _file_handler = logging.FileHandler(str(decision_log_path()), encoding='utf-8')
        _file_handler.setFormatter(logging.Formatter('%(message)s'))  # Raw format
        decision_logger.addHandler(_file_handler)


def build_decision_record(faction, difficulty, intent, queue, reasoning: List[str], turn: int = 0) -> dict:
    """Plain-dict view of a turn decision (JSON-serializable)."""
    return {
        "timestamp": datetime.now().isoformat(),
        "turn": turn,
        "faction_id": faction.id,
        "faction_name": faction.name,
        "difficulty": difficulty.value,
        "intent": {
            "focus": intent.primary_focus.value,
            "aggression": intent.aggression,
            "target_faction_id": intent.target_faction_id,
        } if intent is not None else None,
        "queue": [
            {
                "kind": entry.kind.value,
                "acting_asset": entry.acting_asset_id,
                "target": entry.target,
                "description": entry.description,
                "confidence": round(entry.confidence, 1),
            }
            for entry in queue
        ],
        "reasoning": list(reasoning),
    }


def log_decision(faction, difficulty, intent, queue, reasoning: List[str], turn: int = 0):
    """
    Append a faction-turn decision to the decision log.

    Args:
        faction: The deciding faction
        difficulty: Difficulty tier used
        intent: StrategicIntent the scorer worked under (may be None)
        queue: ActionQueue that was produced
        reasoning: Per-phase reasoning lines
        turn: World turn number
    """
    _ensure_handler()
    record = build_decision_record(faction, difficulty, intent, queue, reasoning, turn)
    decision_logger.info(json.dumps(record, ensure_ascii=False))


def close():
    """Flush and detach the file handler (next log call reopens it)."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.flush()
        _file_handler.close()
        decision_logger.removeHandler(_file_handler)
        _file_handler = None


def flush():
    """Flush the decision log."""
    if _file_handler:
        _file_handler.flush()
