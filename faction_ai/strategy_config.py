"""
Strategy Configuration

Loads the hand-tuned scoring constants from a JSON file so faction behaviour
can be adjusted without code changes. Every component falls back to its own
module constants when a key is missing.

Usage:
    from faction_ai.strategy_config import get_config

    # Get a value (with fallback default)
    threshold = get_config().get('goal_selection', 'change_goal_threshold', default=30)

    # Get a scorer weight
    weight = get_config().get_weight('attack', 'kill_bonus', default=40.0)

Environment:
    STRATEGY_CONFIG - Path to JSON config file (default: configs/production.json)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "configs" / "production.json"


class StrategyConfig:
    """
    Loads and provides access to tuning values from JSON.

    Read-only after load; one instance is shared process-wide.
    """

    def __init__(self, config_path: Optional[str] = None):
        if config_path:
            self.path = Path(config_path)
        else:
            env_path = os.environ.get('STRATEGY_CONFIG')
            self.path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

        self._config: Dict[str, Any] = {}
        self._loaded = False
        self._load()

    def _load(self):
        """Load configuration from JSON file. Problems fall back to defaults."""
        try:
            if self.path.exists():
                with open(self.path, 'r', encoding='utf-8') as f:
                    self._config = json.load(f)
                self._loaded = True
                logger.info(f"Loaded strategy config from: {self.path}")
                logger.info(f"  Config name: {self._config.get('name', 'unknown')}")
                logger.info(f"  Config version: {self._config.get('version', 'unknown')}")
                self._log_key_values()
            else:
                logger.warning(f"Strategy config not found: {self.path}, using defaults")
                self._config = {}
                self._loaded = False
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in strategy config {self.path}: {e}")
            self._config = {}
            self._loaded = False
        except OSError as e:
            logger.error(f"Error reading strategy config {self.path}: {e}")
            self._config = {}
            self._loaded = False

    def _log_key_values(self):
        weights = self._config.get('scorer_weights', {})
        logger.info(f"  [scorer_weights] base={weights.get('base_weight')}, "
                    f"tag={weights.get('tag_weight')}, goal={weights.get('goal_weight')}")

        gs = self._config.get('goal_selection', {})
        logger.info(f"  [goal_selection] change_goal_threshold={gs.get('change_goal_threshold')}")

        diff = self._config.get('difficulty', {})
        logger.info(f"  [difficulty] easy_noise_range={diff.get('easy_noise_range')}, "
                    f"expert_min_win_probability={diff.get('expert_min_win_probability')}")

        ctrl = self._config.get('controller', {})
        logger.info(f"  [controller] max_actions_per_turn={ctrl.get('max_actions_per_turn')}, "
                    f"use_strategic_planner={ctrl.get('use_strategic_planner')}")

    def reload(self):
        """Reload configuration from file."""
        self._load()

    @property
    def name(self) -> str:
        return self._config.get('name', 'default')

    @property
    def version(self) -> str:
        return self._config.get('version', '0.0.0')

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            section: Config section (e.g., 'economy', 'planner')
            key: Key within section (e.g., 'reserve_factor')
            default: Default value if not found

        Returns:
            The config value or default
        """
        section_data = self._config.get(section, {})
        return section_data.get(key, default)

    def get_weight(self, action_kind: str, key: str, default: float = 0.0) -> float:
        """
        Get a per-action-kind scorer weight.

        Shorthand for get('evaluator_weights', action_kind, {}).get(key, default)
        """
        weights = self._config.get('evaluator_weights', {})
        kind_weights = weights.get(action_kind, {})
        return float(kind_weights.get(key, default))

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire config section as a dict (empty if missing)."""
        return self._config.get(section, {})

    def as_dict(self) -> Dict[str, Any]:
        return self._config.copy()


# Global singleton instance
_config: Optional[StrategyConfig] = None


def get_config() -> StrategyConfig:
    """Get the global strategy config singleton."""
    global _config
    if _config is None:
        _config = StrategyConfig()
    return _config


def set_config_path(path: str):
    """
    Set the config path and reload.

    Used for testing or switching between configs at runtime.
    """
    global _config
    _config = StrategyConfig(path)


def reload_config():
    """Reload the current configuration from file."""
    global _config
    if _config:
        _config.reload()
