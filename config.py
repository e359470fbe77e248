import os
from dataclasses import dataclass
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    return int(value) if value not in (None, '') else None


@dataclass
class Config:
    """Runtime settings for the faction AI"""

    # Logging
    LOG_LEVEL: str = os.environ.get('FACTION_AI_LOG_LEVEL', 'INFO')

    # Decision defaults
    DIFFICULTY: str = os.environ.get('FACTION_AI_DIFFICULTY', 'normal')
    SEED: Optional[int] = _optional_int('FACTION_AI_SEED')

    # Presentation pacing between executed actions (seconds)
    ACTION_DELAY: float = float(os.environ.get('FACTION_AI_ACTION_DELAY', '0.75'))

    # Paths
    BASE_DIR: str = os.path.dirname(os.path.abspath(__file__))
    LOG_DIR: str = os.environ.get('FACTION_AI_LOG_DIR', os.path.join(BASE_DIR, 'logs'))

    def ensure_dirs(self):
        os.makedirs(self.LOG_DIR, exist_ok=True)


# Create global config instance
config = Config()
