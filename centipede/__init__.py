"""Centipede-style terminal shooter: simulation core and curses front end."""

from centipede.clock import ClockAlreadyRunningError, ClockState, GameClock, Signal
from centipede.entities import Bullet, Centipede, CentipedeHit, Direction, MushroomMap, Position, Starship
from centipede.logic import GameLogic, ScoreType, execute_path_for_gametick
from centipede.settings import CentipedeSettings
from centipede.state import GameState

__version__ = "1.0.0"
