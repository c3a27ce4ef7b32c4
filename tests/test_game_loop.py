"""End-to-end tests of the game loop driven by a real clock thread."""

import threading

import pytest

from centipede.clock import ClockAlreadyRunningError
from centipede.state import GameState


def run_in_thread(target, timeout=5.0):
    """Run target in a thread and fail instead of hanging forever"""
    errors = []

    def runner():
        try:
            target()
        except BaseException as exc:  # re-raised in the test thread
            errors.append(exc)

    thread = threading.Thread(target=runner, daemon=True)
    thread.start()
    thread.join(timeout)
    assert not thread.is_alive(), "game loop did not finish"
    if errors:
        raise errors[0]


@pytest.fixture
def deadly_settings(settings):
    """Centipedes spawn right on top of the ship"""
    settings.centipede_spawn_line = settings.initial_starship_line
    settings.centipede_spawn_column = settings.initial_starship_column
    return settings


def test_game_runs_until_lives_are_gone(logic, deadly_settings, fake_ui, recording_sleep):
    result = []
    run_in_thread(lambda: result.append(logic.start_new(seed=1)))

    state = result[0]
    assert state.lives == 0
    assert state.current_round == deadly_settings.initial_player_health
    assert state.score == 0
    assert fake_ui.game_over_scores == [0]
    assert fake_ui.renders >= deadly_settings.initial_player_health
    # One post-death pause per lost round, no round bonus
    assert len(recording_sleep.calls) == deadly_settings.initial_player_health
    assert logic._game_clock is None


def test_continue_game_keeps_progress(logic, deadly_settings, fake_ui):
    state = GameState.new(deadly_settings, seed=1)
    state.current_round = 4
    state.score = 50
    state.lives = 1

    run_in_thread(lambda: logic.continue_game(state))

    assert state.current_round == 5
    assert state.score == 50
    assert state.lives == 0
    assert fake_ui.game_over_scores == [50]


def test_end_game_from_pause_menu(logic, state, fake_input, fake_menu, fake_ui):
    fake_menu.resume = False
    fake_input.pause = True

    run_in_thread(lambda: logic.continue_game(state))

    assert fake_menu.calls == 1
    assert state.lives == 0
    assert state.current_round == 1
    assert fake_ui.game_over_scores == [0]
    assert logic._game_clock is None


def test_second_clock_is_rejected(logic, state):
    logic.state = state
    logic._start_game_clock(0.001)
    try:
        with pytest.raises(ClockAlreadyRunningError):
            logic._start_game_clock(0.001)
    finally:
        logic._game_clock.stop()
        logic._wait_for_game_clock()
    assert logic._game_clock is None


def test_rejected_continue_keeps_running_state(logic, state, settings):
    logic.state = state
    logic._start_game_clock(0.001)
    other = GameState.new(settings, seed=2)
    try:
        with pytest.raises(ClockAlreadyRunningError):
            logic.continue_game(other)
        assert logic.state is state
    finally:
        logic._game_clock.stop()
        logic._wait_for_game_clock()


def test_error_in_tick_stops_clock(logic, state, fake_ui):
    def broken_render(state, settings, theme):
        raise RuntimeError("display gone")

    fake_ui.render = broken_render

    with pytest.raises(RuntimeError, match="display gone"):
        run_in_thread(lambda: logic.continue_game(state))
    assert logic._game_clock is None
    assert state.lives == 3
