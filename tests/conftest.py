"""Shared fixtures and fake collaborators for the game logic tests."""

import random

import pytest

from centipede.entities import Direction
from centipede.logic import GameLogic
from centipede.settings import CentipedeSettings
from centipede.state import GameState


class FakeInput:
    """Input buffer whose pending commands are set directly by a test"""

    def __init__(self, fire=False, direction=Direction.NONE, pause=False):
        self.fire = fire
        self.direction = direction
        self.pause = pause

    def take_fire_request(self):
        fire, self.fire = self.fire, False
        return fire

    def take_move_direction(self):
        direction, self.direction = self.direction, Direction.NONE
        return direction

    def take_pause_menu_request(self):
        pause, self.pause = self.pause, False
        return pause


class FakeUI:
    def __init__(self):
        self.renders = 0
        self.game_over_scores = []

    def render(self, state, settings, theme):
        self.renders += 1

    def show_game_over(self, score, settings, theme):
        self.game_over_scores.append(score)


class FakeMenu:
    """Pause menu that waits one tick and then answers with a fixed choice"""

    def __init__(self, resume=True):
        self.resume = resume
        self.calls = 0

    def run_pause_flow(self, delay):
        self.calls += 1
        delay()
        return self.resume


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def settings():
    """A small, empty 10x10 field where the player path runs every tick"""
    return CentipedeSettings(
        field_lines=10,
        field_columns=10,
        starship_zone_lines=3,
        game_tick_length=1,
        starship_modulo_gametick_slowdown=1,
        live_lost_break_time=0,
        initial_centipede_modulo_gametick_slowdown=2,
        centipede_speed_increment_round_modulo_slowdown=2,
        centipede_speed_increment_amount=1,
        initial_centipede_size=5,
        centipede_size_increment_round_modulo_slowdown=3,
        centipede_size_increment_amount=2,
        points_for_centipede_hit=10,
        points_for_mushroom_kill=1,
        points_for_round_end=100,
        initial_player_health=3,
        initial_starship_line=9,
        initial_starship_column=5,
        centipede_spawn_line=0,
        centipede_spawn_column=5,
        mushroom_durability=3,
        mushroom_density=0.0,
    )


@pytest.fixture
def state(settings):
    return GameState.new(settings, seed=0)


@pytest.fixture
def fake_input():
    return FakeInput()


@pytest.fixture
def fake_ui():
    return FakeUI()


@pytest.fixture
def fake_menu():
    return FakeMenu()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def logic(fake_input, fake_ui, fake_menu, settings, recording_sleep):
    return GameLogic(fake_input, fake_ui, None, fake_menu, settings,
                     rng=random.Random(0), sleep=recording_sleep)
