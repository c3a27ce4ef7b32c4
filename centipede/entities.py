"""Game objects moved around by the simulation: ship, bullets, mushrooms, centipedes."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from centipede.settings import CentipedeSettings

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Movement directions on the field grid"""
    NONE = 0
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4

    def opposite(self) -> 'Direction':
        return _OPPOSITES[self]


_OFFSETS = {
    Direction.NONE: (0, 0),
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}

_OPPOSITES = {
    Direction.NONE: Direction.NONE,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class CentipedeHit(Enum):
    """Outcome of testing a bullet against a centipede"""
    NO_HIT = 0
    TAIL_HIT = 1
    HEAD_HIT = 2


@dataclass(frozen=True)
class Position:
    """A cell on the field, line 0 is the top"""
    line: int
    column: int

    def moved(self, direction: Direction) -> 'Position':
        d_line, d_column = _OFFSETS[direction]
        return Position(self.line + d_line, self.column + d_column)


@dataclass
class Bullet:
    """Player's bullet, travels straight up"""
    position: Position

    def move(self) -> bool:
        """Move one line up. Returns False if the bullet has left the field."""
        if self.position.line <= 0:
            return False
        self.position = self.position.moved(Direction.UP)
        return True


class MushroomMap:
    """Grid of mushroom durabilities.

    EMPTY marks a free cell. A value of 1 or more is a live mushroom that
    stops bullets and the ship. A value of 0 is a destroyed mushroom: bullets
    pass through it, but it stays in place and still turns centipedes around.
    """

    EMPTY = -1

    def __init__(self, lines: int, columns: int, durability: int = 3):
        self.durability = durability
        self.grid = np.full((lines, columns), self.EMPTY, dtype=np.int16)

    @classmethod
    def generate(cls, settings: CentipedeSettings, seed: Optional[int] = None) -> 'MushroomMap':
        """Scatter the initial mushrooms, keeping spawn line and player zone clear"""
        mushroom_map = cls(settings.field_lines, settings.field_columns, settings.mushroom_durability)
        rng = np.random.default_rng(seed)
        planted = rng.random(mushroom_map.grid.shape) < settings.mushroom_density
        mushroom_map.grid[planted] = settings.mushroom_durability

        # Centipedes enter on the spawn line and the ship needs room to move
        if 0 <= settings.centipede_spawn_line < settings.field_lines:
            mushroom_map.grid[settings.centipede_spawn_line, :] = cls.EMPTY
        zone_top = max(0, settings.field_lines - settings.starship_zone_lines)
        mushroom_map.grid[zone_top:, :] = cls.EMPTY
        return mushroom_map

    @property
    def lines(self) -> int:
        return self.grid.shape[0]

    @property
    def columns(self) -> int:
        return self.grid.shape[1]

    def contains(self, position: Position) -> bool:
        return 0 <= position.line < self.lines and 0 <= position.column < self.columns

    def get_mushroom(self, line: int, column: int) -> int:
        """Durability at a cell, EMPTY if nothing is planted there"""
        return int(self.grid[line, column])

    def plant(self, position: Position, durability: Optional[int] = None) -> None:
        if not self.contains(position):
            return
        self.grid[position.line, position.column] = self.durability if durability is None else durability

    def is_live(self, position: Position) -> bool:
        return self.contains(position) and self.grid[position.line, position.column] > 0

    def collide(self, bullet: Bullet) -> bool:
        """Damage a live mushroom under the bullet. Returns True on a hit."""
        if not self.is_live(bullet.position):
            return False
        self.grid[bullet.position.line, bullet.position.column] -= 1
        return True

    def blocks_starship(self, position: Position) -> bool:
        return not self.contains(position) or self.is_live(position)

    def blocks_centipede(self, position: Position) -> bool:
        if not self.contains(position):
            return True
        return self.grid[position.line, position.column] != self.EMPTY

    def count(self) -> int:
        """Number of live mushrooms"""
        return int(np.count_nonzero(self.grid > 0))


@dataclass
class Starship:
    """Player's ship"""
    position: Position

    def shoot(self) -> Bullet:
        return Bullet(self.position)

    def move(self, direction: Direction, mushroom_map: MushroomMap, settings: CentipedeSettings) -> bool:
        """Move one step unless the target cell is blocked or outside the player zone"""
        if direction == Direction.NONE:
            return False
        target = self.position.moved(direction)
        zone_top = settings.field_lines - settings.starship_zone_lines
        if target.line < zone_top or mushroom_map.blocks_starship(target):
            return False
        self.position = target
        return True


@dataclass
class Centipede:
    """A chain of segments. segments[0] is the head, the rest follow it."""
    segments: List[Position]
    horizontal: Direction = Direction.RIGHT
    vertical: Direction = Direction.DOWN

    @classmethod
    def spawn(cls, line: int, column: int, horizontal: Direction, size: int) -> 'Centipede':
        """Create a chain whose body trails behind the head, possibly off-field"""
        step = _OFFSETS[horizontal][1]
        segments = [Position(line, column - i * step) for i in range(max(1, size))]
        return cls(segments, horizontal, Direction.DOWN)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def head(self) -> Position:
        return self.segments[0]

    def segment_index_at(self, position: Position) -> Optional[int]:
        for index, segment in enumerate(self.segments):
            if segment == position:
                return index
        return None

    def is_at_position(self, position: Position) -> bool:
        return position in self.segments

    def move(self, mushroom_map: MushroomMap, centipedes: List['Centipede']) -> None:
        """Advance the head one cell and let the body follow"""
        forward = self.head.moved(self.horizontal)
        if self._blocked(forward, mushroom_map, centipedes):
            new_head = self._turn(mushroom_map)
        else:
            new_head = forward
        self.segments = [new_head] + self.segments[:-1]

    def _blocked(self, position: Position, mushroom_map: MushroomMap, centipedes: List['Centipede']) -> bool:
        if mushroom_map.blocks_centipede(position):
            return True
        return any(other is not self and other.is_at_position(position) for other in centipedes)

    def _turn(self, mushroom_map: MushroomMap) -> Position:
        # Bounce off the bottom (or top) line and keep snaking the other way
        if not mushroom_map.contains(self.head.moved(self.vertical)):
            self.vertical = self.vertical.opposite()
        self.horizontal = self.horizontal.opposite()
        return self.head.moved(self.vertical)

    def collide(self, bullet: Bullet, mushroom_map: MushroomMap) -> Tuple[CentipedeHit, Optional['Centipede']]:
        """Test a bullet against every segment.

        The struck segment is removed and leaves a mushroom behind. Segments
        past the struck one are returned as a new, independent centipede.
        After a HEAD_HIT this chain is empty and must be discarded.
        """
        index = self.segment_index_at(bullet.position)
        if index is None:
            return CentipedeHit.NO_HIT, None

        hit_position = self.segments[index]
        remainder = self.segments[index + 1:]
        self.segments = self.segments[:index]
        mushroom_map.plant(hit_position)

        split_off = None
        if remainder:
            # The new head keeps crawling toward where its leader was
            horizontal = _heading(remainder[0], hit_position, self.horizontal)
            split_off = Centipede(remainder, horizontal, self.vertical)
            logger.debug("Centipede split at segment %d: %d + %d segments",
                         index, len(self.segments), len(split_off))

        if index == 0:
            return CentipedeHit.HEAD_HIT, split_off
        return CentipedeHit.TAIL_HIT, split_off


def _heading(start: Position, target: Position, fallback: Direction) -> Direction:
    if start.line == target.line and start.column != target.column:
        return Direction.RIGHT if target.column > start.column else Direction.LEFT
    return fallback
