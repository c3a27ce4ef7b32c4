"""Gameplay configuration for the centipede simulation."""

import json
import logging
import os
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = '.centipede_settings.json'


@dataclass
class CentipedeSettings:
    """Read-only gameplay values consumed by the simulation core"""
    # Field geometry (cells, not terminal characters)
    field_lines: int = 20
    field_columns: int = 40
    starship_zone_lines: int = 5  # Ship may only roam the bottom lines

    # Timing
    game_tick_length: int = 25  # Milliseconds per tick
    starship_modulo_gametick_slowdown: int = 2
    live_lost_break_time: int = 1500  # Milliseconds

    # Centipede speed: lower modulus means faster chains
    initial_centipede_modulo_gametick_slowdown: int = 8
    centipede_speed_increment_round_modulo_slowdown: int = 2
    centipede_speed_increment_amount: int = 1

    # Centipede length
    initial_centipede_size: int = 8
    centipede_size_increment_round_modulo_slowdown: int = 3
    centipede_size_increment_amount: int = 2

    # Scoring
    points_for_centipede_hit: int = 10
    points_for_mushroom_kill: int = 1
    points_for_round_end: int = 100

    # Player
    initial_player_health: int = 3
    initial_starship_line: int = 19
    initial_starship_column: int = 20

    # Spawning
    centipede_spawn_line: int = 0
    centipede_spawn_column: int = 20
    mushroom_durability: int = 3
    mushroom_density: float = 0.06

    @property
    def tick_seconds(self) -> float:
        return self.game_tick_length / 1000.0

    @property
    def live_lost_break_seconds(self) -> float:
        return self.live_lost_break_time / 1000.0

    @classmethod
    def from_dict(cls, data: dict) -> 'CentipedeSettings':
        """Build settings from a mapping, ignoring keys that are not settings"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def load(cls, path: str = DEFAULT_SETTINGS_FILE) -> 'CentipedeSettings':
        """Load settings from a JSON file, falling back to defaults"""
        if not os.path.exists(path):
            return cls()
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read settings from %s: %s", path, exc)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Settings file %s does not hold an object, using defaults", path)
            return cls()
        return cls.from_dict(data)
