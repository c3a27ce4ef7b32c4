"""Simulation core: runs rounds of the game one clock tick at a time.

Each tick runs up to two independently paced paths and then resolves the
collisions between them:

  1. player path   - ship and bullets, every starship_modulo_gametick_slowdown ticks
  2. centipede path - every current_centipede_modulo_gametick_slowdown ticks,
                      a modulus that shrinks as the rounds go by
  3. global collisions - whenever either path ran
"""

import logging
import random
import time
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from centipede.clock import ClockAlreadyRunningError, GameClock, Signal
from centipede.entities import Centipede, CentipedeHit, Direction
from centipede.settings import CentipedeSettings
from centipede.state import GameState

logger = logging.getLogger(__name__)

# Slowdowns are used as a modulus, anything below 1 is meaningless
MINIMUM_SLOWDOWN = 1
MINIMUM_CENTIPEDE_SIZE = 1


class ScoreType(Enum):
    """Events that award points"""
    CENTIPEDE_HIT = 0
    MUSHROOM_KILL = 1
    ROUND_END = 2


class InputBuffer(Protocol):
    """Pending player commands. Each take_* call consumes its command."""

    def take_fire_request(self) -> bool: ...

    def take_move_direction(self) -> Direction: ...

    def take_pause_menu_request(self) -> bool: ...


class UserInterface(Protocol):
    def render(self, state: GameState, settings: CentipedeSettings, theme: Any) -> None: ...

    def show_game_over(self, score: int, settings: CentipedeSettings, theme: Any) -> None: ...


class PauseMenu(Protocol):
    def run_pause_flow(self, delay: Callable[[], Any]) -> bool:
        """Run the menu, calling delay() to wait a tick. Returns True to resume."""
        ...


def execute_path_for_gametick(game_tick: int, modulo_slowdown: int) -> bool:
    """Whether a path with the given slowdown runs on this tick"""
    return game_tick % modulo_slowdown == 0


def calculate_centipede_slowdown(settings: CentipedeSettings, current_round: int) -> int:
    number_of_speedups = current_round // settings.centipede_speed_increment_round_modulo_slowdown
    slowdown = (settings.initial_centipede_modulo_gametick_slowdown
                - number_of_speedups * settings.centipede_speed_increment_amount)
    return max(MINIMUM_SLOWDOWN, slowdown)


def calculate_centipede_size(settings: CentipedeSettings, current_round: int) -> int:
    number_of_increments = current_round // settings.centipede_size_increment_round_modulo_slowdown
    size = settings.initial_centipede_size + number_of_increments * settings.centipede_size_increment_amount
    return max(MINIMUM_CENTIPEDE_SIZE, size)


class GameLogic:
    """Main game loop and rules.

    The loop thread is the only writer of the GameState. The clock thread
    only reads lives (through alive()) and notifies the tick signal.
    """

    def __init__(self, input_buffer: InputBuffer, ui: UserInterface, theme: Any, menu: PauseMenu,
                 settings: Optional[CentipedeSettings] = None, rng: Optional[random.Random] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.input_buffer = input_buffer
        self.ui = ui
        self.theme = theme
        self.menu = menu
        self.settings = settings if settings is not None else CentipedeSettings()
        self.rng = rng if rng is not None else random.Random()
        self.sleep = sleep

        self.state: Optional[GameState] = None
        self.has_died_in_round = False
        self._game_clock: Optional[GameClock] = None

    # ------------------------------------------------------------------
    # Control

    def start_new(self, seed: Optional[int] = None) -> GameState:
        """Play a fresh game until it is lost. Returns the final state."""
        return self.continue_game(GameState.new(self.settings, seed))

    def continue_game(self, state: GameState) -> GameState:
        """Play on from the given state until the game is lost"""
        # The running game's clock reads self.state, leave it alone
        if self._game_clock is not None:
            raise ClockAlreadyRunningError("Game clock already running.")
        self.state = state
        self._game_loop()
        return state

    def alive(self) -> bool:
        """Whether the game should keep running (read from the clock thread too)"""
        state = self.state
        return state is not None and state.lives > 0

    # ------------------------------------------------------------------
    # Loop and clock

    def _game_loop(self) -> None:
        state = self.state
        signal = self._start_game_clock(state.settings.tick_seconds)
        try:
            while self.alive():
                self.start_next_round(state)

                while self.continue_round(state):
                    state.increment_game_tick()
                    signal.wait()

                    self.handle_player_controlled_entities(state)
                    self.handle_centipedes(state)
                    self.handle_global_collisions(state)

                    self.ui.render(state, state.settings, self.theme)
                    self._break_game_if_necessary(state, signal)

                self.finish_round(state)

            if state.lives <= 0:
                self._lose_game(state)
        except BaseException:
            # Lives are still left, so the clock would never notice on its own
            self._game_clock.stop()
            raise
        finally:
            self._wait_for_game_clock()

    def _start_game_clock(self, tick_seconds: float) -> Signal:
        if self._game_clock is not None:
            raise ClockAlreadyRunningError("Game clock already running.")
        self._game_clock = GameClock(tick_seconds, self.alive)
        return self._game_clock.start()

    def _wait_for_game_clock(self) -> None:
        self._game_clock.join()
        self._game_clock = None

    def _break_game_if_necessary(self, state: GameState, signal: Signal) -> None:
        """Open the pause menu if requested. Ending the game there drains all lives."""
        if not self.input_buffer.take_pause_menu_request():
            return

        if self.menu.run_pause_flow(signal.wait):
            return

        logger.info("Game ended from the pause menu")
        while self.alive():
            self.lose_live(state)

    # ------------------------------------------------------------------
    # Rounds

    def continue_round(self, state: GameState) -> bool:
        """A round goes on while centipedes are left and the player lives"""
        return len(state.centipedes) > 0 and state.lives > 0

    def start_next_round(self, state: GameState) -> None:
        """Speed up and grow the centipede, then spawn it"""
        settings = state.settings
        current_round = state.increment_current_round()
        self.has_died_in_round = False

        slowdown = calculate_centipede_slowdown(settings, current_round)
        state.current_centipede_modulo_gametick_slowdown = slowdown
        size = calculate_centipede_size(settings, current_round)

        direction = self._random_centipede_moving_direction()
        state.centipedes.append(Centipede.spawn(settings.centipede_spawn_line,
                                                settings.centipede_spawn_column,
                                                direction, size))
        logger.info("Round %d: centipede of %d segments, slowdown %d",
                    current_round, size, slowdown)

    def finish_round(self, state: GameState) -> None:
        """Award the round bonus, or hold for a moment after losing a life"""
        if not self.has_died_in_round:
            self.increase_score(state, ScoreType.ROUND_END)
        else:
            self.sleep(state.settings.live_lost_break_seconds)

    def _random_centipede_moving_direction(self) -> Direction:
        return self.rng.choice((Direction.LEFT, Direction.RIGHT))

    def _lose_game(self, state: GameState) -> None:
        logger.info("Game over after round %d with score %d", state.current_round, state.score)
        self.ui.show_game_over(state.score, state.settings, self.theme)

    # ------------------------------------------------------------------
    # Score and lives

    def increase_score(self, state: GameState, score_type: ScoreType) -> None:
        settings = state.settings
        if score_type == ScoreType.CENTIPEDE_HIT:
            state.add_to_score(settings.points_for_centipede_hit)
        elif score_type == ScoreType.MUSHROOM_KILL:
            state.add_to_score(settings.points_for_mushroom_kill)
        elif score_type == ScoreType.ROUND_END:
            state.add_to_score(settings.points_for_round_end)

    def lose_live(self, state: GameState) -> None:
        """Take a life, forfeit the round bonus and clear the field of centipedes"""
        state.lose_live()
        self.has_died_in_round = True
        state.centipedes.clear()
        logger.info("Life lost, %d left", state.lives)

    # ------------------------------------------------------------------
    # Path 1: player controlled entities

    def handle_player_controlled_entities(self, state: GameState) -> None:
        if not execute_path_for_gametick(state.game_tick, state.settings.starship_modulo_gametick_slowdown):
            return

        self._spawn_bullet_if_necessary(state)
        self._move_bullets(state)
        self._collide_bullets_mushrooms(state)
        self._move_starship_if_necessary(state)

    def _spawn_bullet_if_necessary(self, state: GameState) -> None:
        if self.input_buffer.take_fire_request():
            state.bullets.append(state.starship.shoot())

    def _move_bullets(self, state: GameState) -> None:
        survivors = []
        for bullet in state.bullets:
            # Bullets that cannot move have reached the top
            if bullet.move():
                survivors.append(bullet)
        state.bullets = survivors

    def _collide_bullets_mushrooms(self, state: GameState) -> None:
        mushroom_map = state.mushroom_map
        survivors = []
        for bullet in state.bullets:
            if not mushroom_map.collide(bullet):
                survivors.append(bullet)
                continue
            if mushroom_map.get_mushroom(bullet.position.line, bullet.position.column) == 0:
                self.increase_score(state, ScoreType.MUSHROOM_KILL)
        state.bullets = survivors

    def _move_starship_if_necessary(self, state: GameState) -> None:
        direction = self.input_buffer.take_move_direction()
        if direction == Direction.NONE:
            return
        state.starship.move(direction, state.mushroom_map, state.settings)

    # ------------------------------------------------------------------
    # Path 2: centipedes

    def handle_centipedes(self, state: GameState) -> None:
        if not execute_path_for_gametick(state.game_tick, state.current_centipede_modulo_gametick_slowdown):
            return

        for centipede in state.centipedes:
            centipede.move(state.mushroom_map, state.centipedes)

    # ------------------------------------------------------------------
    # Collisions between both paths

    def handle_global_collisions(self, state: GameState) -> None:
        # Nothing moved, so nothing new can collide
        if (not execute_path_for_gametick(state.game_tick, state.settings.starship_modulo_gametick_slowdown)
                and not execute_path_for_gametick(state.game_tick,
                                                  state.current_centipede_modulo_gametick_slowdown)):
            return

        self._collide_bullets_centipedes(state)
        self._collide_player_centipedes(state)

    def _collide_bullets_centipedes(self, state: GameState) -> None:
        centipedes = state.centipedes
        removed = set()

        # Split-off tails are appended while scanning and get checked too
        index = 0
        while index < len(centipedes):
            centipede = centipedes[index]
            index += 1

            head_hit = False
            survivors = []
            for bullet in state.bullets:
                if head_hit:
                    survivors.append(bullet)
                    continue

                hit, split_off = centipede.collide(bullet, state.mushroom_map)
                if hit == CentipedeHit.NO_HIT:
                    survivors.append(bullet)
                    continue

                self.increase_score(state, ScoreType.CENTIPEDE_HIT)
                if split_off is not None:
                    centipedes.append(split_off)
                if hit == CentipedeHit.HEAD_HIT:
                    head_hit = True
            state.bullets = survivors

            if head_hit:
                removed.add(id(centipede))

        if removed:
            state.centipedes = [c for c in centipedes if id(c) not in removed]

    def _collide_player_centipedes(self, state: GameState) -> None:
        position = state.starship.position
        # Every overlapping centipede costs a life, even within the same tick
        overlapping = [c for c in state.centipedes if c.is_at_position(position)]
        for _ in overlapping:
            self.lose_live(state)
