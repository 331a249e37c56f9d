#!/usr/bin/env python3

# GRIT - submission intake and verification
# Copyright © 2026 The GRIT development team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Minimal terminal capabilities used to colour the shell log."""

import curses
import sys


class colors:
    BLACK = curses.COLOR_BLACK
    RED = curses.COLOR_RED
    GREEN = curses.COLOR_GREEN
    YELLOW = curses.COLOR_YELLOW
    BLUE = curses.COLOR_BLUE
    MAGENTA = curses.COLOR_MAGENTA
    CYAN = curses.COLOR_CYAN
    WHITE = curses.COLOR_WHITE


def has_color_support(stream) -> bool:
    """Return whether stream is a terminal that can show colours.

    Anything we cannot tell for sure (no fileno, no terminfo entry,
    curses failing to initialize) is treated as "no colours".

    stream: a file-like object.

    """
    if not stream.isatty():
        return False
    try:
        curses.setupterm(fd=stream.fileno())
        return curses.tigetnum("colors") > 0
    except Exception:
        return False


def add_color_to_string(string: str, color: int, stream=sys.stdout,
                        bold: bool = False, force: bool = False) -> str:
    """Wrap string in the escape sequences for the given colour.

    string: the text to colour.
    color: one of the colors.* constants.
    stream: the stream the text will be written on; colours are only
        added if it supports them, unless force is True.
    bold: whether to also make the text bold.
    force: add the escape sequences regardless of stream.

    """
    if not force and not has_color_support(stream):
        return string
    prefix = ""
    if color != colors.BLACK:
        prefix += curses.tparm(curses.tigetstr("setaf"), color).decode()
    if bold:
        prefix += curses.tparm(curses.tigetstr("bold")).decode()
    return prefix + string + curses.tparm(curses.tigetstr("sgr0")).decode()
