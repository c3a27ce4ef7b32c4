"""The game state owned by the simulation loop."""

from dataclasses import dataclass, field
from typing import List, Optional

from centipede.entities import Bullet, Centipede, MushroomMap, Position, Starship
from centipede.settings import CentipedeSettings


@dataclass
class GameState:
    """Everything a running (or paused) game needs to continue"""
    settings: CentipedeSettings
    starship: Starship
    mushroom_map: MushroomMap
    bullets: List[Bullet] = field(default_factory=list)
    centipedes: List[Centipede] = field(default_factory=list)
    current_centipede_modulo_gametick_slowdown: int = 1
    current_round: int = 0
    score: int = 0
    lives: int = 0
    game_tick: int = 0

    @classmethod
    def new(cls, settings: CentipedeSettings, seed: Optional[int] = None) -> 'GameState':
        """Create the state for a fresh game"""
        starship = Starship(Position(settings.initial_starship_line, settings.initial_starship_column))
        return cls(
            settings=settings,
            starship=starship,
            mushroom_map=MushroomMap.generate(settings, seed),
            current_centipede_modulo_gametick_slowdown=settings.initial_centipede_modulo_gametick_slowdown,
            lives=settings.initial_player_health,
        )

    def increment_game_tick(self) -> int:
        self.game_tick += 1
        return self.game_tick

    def increment_current_round(self) -> int:
        self.current_round += 1
        return self.current_round

    def add_to_score(self, points: int) -> None:
        self.score += points

    def lose_live(self) -> None:
        self.lives -= 1

    def segment_count(self) -> int:
        """Total number of centipede segments on the field"""
        return sum(len(centipede) for centipede in self.centipedes)
