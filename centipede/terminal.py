#!/usr/bin/env python3
"""
CENTIPEDE - Terminal front end

Controls:
  Arrow keys - Move ship
  Space - Shoot
  P / ESC - Pause menu
"""

import argparse
import curses
import logging
import random
import sys
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from pynput import keyboard

from centipede.entities import Direction, MushroomMap, Position
from centipede.logic import GameLogic
from centipede.settings import DEFAULT_SETTINGS_FILE, CentipedeSettings
from centipede.state import GameState

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = '.centipede.log'

# Color pair ids
PAIR_TEXT = 1
PAIR_STARSHIP = 2
PAIR_BULLET = 3
PAIR_CENTIPEDE = 4
PAIR_MUSHROOM = 5
PAIR_BORDER = 6
PAIR_ALERT = 7


@dataclass
class Theme:
    """Glyphs and colors used to draw the game"""
    starship: str = "▲"
    bullet: str = "│"
    centipede_head: str = "◉"
    centipede_body: str = "●"
    # Indexed by durability, index 0 is a destroyed mushroom
    mushrooms: Tuple[str, ...] = ("·", "░", "▒", "▓")
    background: int = 17  # Very dark blue
    # Pair id -> (256-color foreground, 8-color fallback)
    colors: Dict[int, Tuple[int, int]] = field(default_factory=lambda: {
        PAIR_TEXT: (146, curses.COLOR_WHITE),        # Blue-gray text
        PAIR_STARSHIP: (116, curses.COLOR_CYAN),     # Pale cyan ship
        PAIR_BULLET: (179, curses.COLOR_YELLOW),     # Amber bullets
        PAIR_CENTIPEDE: (173, curses.COLOR_RED),     # Dusty orange centipedes
        PAIR_MUSHROOM: (108, curses.COLOR_GREEN),    # Moss green mushrooms
        PAIR_BORDER: (103, curses.COLOR_WHITE),      # Slate border
        PAIR_ALERT: (174, curses.COLOR_MAGENTA),     # Salmon for menus
    })

    def mushroom_glyph(self, durability: int) -> str:
        return self.mushrooms[min(durability, len(self.mushrooms) - 1)]


class KeyListener:
    """Input buffer fed by a pynput keyboard listener running in its own thread"""

    DIRECTION_KEYS = {
        keyboard.Key.up: Direction.UP,
        keyboard.Key.down: Direction.DOWN,
        keyboard.Key.left: Direction.LEFT,
        keyboard.Key.right: Direction.RIGHT,
    }

    def __init__(self):
        self._lock = threading.Lock()
        self._shot = False
        self._direction = Direction.NONE
        self._pause_menu = False
        self._menu_choice: Optional[str] = None
        self._listener = keyboard.Listener(on_press=self._on_key_press)

    def start(self):
        self._listener.start()

    def stop(self):
        self._listener.stop()

    def _on_key_press(self, key):
        """Callback for key press events from pynput"""
        with self._lock:
            if key in self.DIRECTION_KEYS:
                self._direction = self.DIRECTION_KEYS[key]
            elif key == keyboard.Key.space:
                self._shot = True
            elif key == keyboard.Key.esc:
                self._pause_menu = True
            else:
                char = getattr(key, 'char', None)
                if not char:
                    return
                char = char.lower()
                if char == 'p':
                    self._pause_menu = True
                self._menu_choice = char

    def take_fire_request(self) -> bool:
        with self._lock:
            shot, self._shot = self._shot, False
        return shot

    def take_move_direction(self) -> Direction:
        with self._lock:
            direction, self._direction = self._direction, Direction.NONE
        return direction

    def take_pause_menu_request(self) -> bool:
        with self._lock:
            pause_menu, self._pause_menu = self._pause_menu, False
        return pause_menu

    def take_menu_choice(self) -> Optional[str]:
        with self._lock:
            choice, self._menu_choice = self._menu_choice, None
        return choice

    def clear(self):
        """Drop every pending command"""
        with self._lock:
            self._shot = False
            self._direction = Direction.NONE
            self._pause_menu = False
            self._menu_choice = None


class TerminalUI:
    """Draws the game state with curses"""

    # The field is drawn inside a border, below the HUD line
    FIELD_TOP = 2
    FIELD_LEFT = 1

    def __init__(self, stdscr, theme: Theme):
        self.stdscr = stdscr
        self.height, self.width = stdscr.getmaxyx()

        curses.curs_set(0)
        stdscr.nodelay(1)
        stdscr.timeout(0)

        curses.start_color()
        rich_colors = curses.COLORS >= 256
        background = theme.background if rich_colors else curses.COLOR_BLACK
        for pair, (rich, basic) in theme.colors.items():
            curses.init_pair(pair, rich if rich_colors else basic, background)
        stdscr.bkgd(' ', curses.color_pair(PAIR_TEXT))

    def _put(self, line: int, column: int, text: str, attr: int = 0):
        try:
            self.stdscr.addstr(line, column, text, attr)
        except curses.error:
            pass  # Writing into the last cell or off-screen

    def _put_cell(self, position: Position, mushroom_map: MushroomMap, text: str, attr: int):
        # Body segments can still be outside the field while crawling in
        if mushroom_map.contains(position):
            self._put(self.FIELD_TOP + position.line, self.FIELD_LEFT + position.column, text, attr)

    def render(self, state: GameState, settings: CentipedeSettings, theme: Theme):
        """Draw everything to the screen"""
        self.stdscr.erase()
        mushroom_map = state.mushroom_map

        hud = f"SCORE {state.score:>6}   LIVES {state.lives}   ROUND {state.current_round}"
        self._put(0, self.FIELD_LEFT, hud, curses.color_pair(PAIR_TEXT) | curses.A_BOLD)
        self._draw_border(settings)

        # Mushrooms, including destroyed ones
        mushroom_attr = curses.color_pair(PAIR_MUSHROOM)
        for line, column in np.argwhere(mushroom_map.grid != MushroomMap.EMPTY):
            durability = mushroom_map.get_mushroom(line, column)
            self._put(self.FIELD_TOP + int(line), self.FIELD_LEFT + int(column),
                      theme.mushroom_glyph(durability), mushroom_attr)

        centipede_attr = curses.color_pair(PAIR_CENTIPEDE)
        for centipede in state.centipedes:
            for index, segment in enumerate(centipede.segments):
                glyph = theme.centipede_head if index == 0 else theme.centipede_body
                attr = centipede_attr | curses.A_BOLD if index == 0 else centipede_attr
                self._put_cell(segment, mushroom_map, glyph, attr)

        for bullet in state.bullets:
            self._put_cell(bullet.position, mushroom_map, theme.bullet, curses.color_pair(PAIR_BULLET))

        self._put_cell(state.starship.position, mushroom_map, theme.starship,
                       curses.color_pair(PAIR_STARSHIP) | curses.A_BOLD)

        self.stdscr.refresh()

    def _draw_border(self, settings: CentipedeSettings):
        attr = curses.color_pair(PAIR_BORDER)
        top = self.FIELD_TOP - 1
        bottom = self.FIELD_TOP + settings.field_lines
        right = self.FIELD_LEFT + settings.field_columns
        self._put(top, self.FIELD_LEFT - 1, "╔" + "═" * settings.field_columns + "╗", attr)
        for line in range(self.FIELD_TOP, bottom):
            self._put(line, self.FIELD_LEFT - 1, "║", attr)
            self._put(line, right, "║", attr)
        self._put(bottom, self.FIELD_LEFT - 1, "╚" + "═" * settings.field_columns + "╝", attr)

    def show_menu(self, title: str, text: List[str], options: List[str], theme: Theme):
        """Draw a boxed dialog in the middle of the screen"""
        width = max([len(title)] + [len(line) for line in text + options] + [20]) + 4

        def format_box_line(content):
            return f"║{content.center(width - 2)}║"

        lines = ["╔" + "═" * (width - 2) + "╗", format_box_line(title), "╠" + "═" * (width - 2) + "╣"]
        lines += [format_box_line(line) for line in text]
        if options:
            lines.append(format_box_line(""))
            lines += [format_box_line(option) for option in options]
        lines.append("╚" + "═" * (width - 2) + "╝")

        start_y = max(0, (self.height - len(lines)) // 2)
        start_x = max(0, (self.width - width) // 2)
        for i, line in enumerate(lines):
            attr = curses.color_pair(PAIR_ALERT) | curses.A_BOLD if i == 1 else curses.color_pair(PAIR_TEXT)
            self._put(start_y + i, start_x, line, attr)
        self.stdscr.refresh()

    def show_game_over(self, score: int, settings: CentipedeSettings, theme: Theme):
        self.stdscr.erase()
        self.show_menu("G A M E   O V E R", [f"Your score was {score}"], [], theme)

    def ask_play_again(self, theme: Theme, score: int) -> bool:
        """Block until the player answers the play-again prompt"""
        self.show_menu("G A M E   O V E R", [f"Your score was {score}", "", "Play again?"],
                       ["[Y] Yes    [N] No"], theme)
        curses.flushinp()
        self.stdscr.nodelay(0)
        try:
            while True:
                key = self.stdscr.getch()
                if key in (ord('y'), ord('Y')):
                    return True
                if key in (ord('n'), ord('N'), ord('q'), ord('Q'), 27):
                    return False
        finally:
            self.stdscr.nodelay(1)


class MenuLogic:
    """Pause menu shown in the middle of a game"""

    def __init__(self, ui: TerminalUI, key_listener: KeyListener, theme: Theme):
        self.ui = ui
        self.key_listener = key_listener
        self.theme = theme

    def run_pause_flow(self, delay: Callable[[], object]) -> bool:
        """Show the pause menu until the player picks. Returns True to resume."""
        self.key_listener.take_menu_choice()  # Drop the key that opened the menu
        self.ui.show_menu("P A U S E D", ["The centipedes are waiting."],
                          ["[R] Resume", "[E] End game"], self.theme)
        try:
            while True:
                delay()
                # P or ESC again closes the menu
                if self.key_listener.take_pause_menu_request():
                    return True
                choice = self.key_listener.take_menu_choice()
                if choice == 'r':
                    return True
                if choice in ('e', 'q'):
                    return False
        finally:
            self.key_listener.clear()


def main(stdscr, settings: CentipedeSettings, seed: Optional[int] = None):
    """Entry point for curses wrapper"""
    stdscr.clear()
    stdscr.refresh()

    # Field plus border plus HUD line
    required_height = settings.field_lines + TerminalUI.FIELD_TOP + 1
    required_width = settings.field_columns + 2
    height, width = stdscr.getmaxyx()
    if height < required_height or width < required_width:
        curses.endwin()
        print(f"Error: Terminal size must be at least {required_width}x{required_height}.")
        print(f"Current size: {width}x{height}")
        sys.exit(1)

    theme = Theme()
    ui = TerminalUI(stdscr, theme)
    key_listener = KeyListener()
    key_listener.start()
    menu = MenuLogic(ui, key_listener, theme)
    rng = random.Random(seed)

    try:
        while True:
            key_listener.clear()
            game = GameLogic(key_listener, ui, theme, menu, settings, rng=rng)
            final_state = game.start_new(seed)
            if not ui.ask_play_again(theme, final_state.score):
                break
    finally:
        key_listener.stop()


def run(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Centipede in the terminal")
    parser.add_argument('--settings', default=DEFAULT_SETTINGS_FILE,
                        help="JSON file overriding gameplay settings")
    parser.add_argument('--seed', type=int, default=None, help="Seed for mushrooms and spawn directions")
    parser.add_argument('--log-file', default=DEFAULT_LOG_FILE)
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args(argv)

    # curses owns the terminal, so logs go to a file
    logging.basicConfig(filename=args.log_file, level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    settings = CentipedeSettings.load(args.settings)
    curses.wrapper(main, settings, args.seed)


if __name__ == "__main__":
    run()
