#!/usr/bin/env python3
"""
CENTIPEDE Launcher
==================
Run this script to start the game.
"""

from centipede.terminal import run

if __name__ == "__main__":
    run()
