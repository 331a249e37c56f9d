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

"""Logging setup shared by every GRIT component.

Importing grit installs a handler on stdout for the root logger. Log
records can carry two optional bits of context, shown between brackets
before the message: the submission being processed (passed in
"extra") and the operation being performed (added by
OperationAdapter).

"""

import logging
import sys

import gevent.lock

from gritcommon.terminal import colors, add_color_to_string, has_color_support


class StreamHandler(logging.StreamHandler):
    """A StreamHandler whose lock only blocks the current greenlet."""

    def createLock(self):
        self.lock = gevent.lock.RLock()


_PALETTE = [colors.BLACK, colors.RED, colors.GREEN, colors.YELLOW,
            colors.BLUE, colors.MAGENTA, colors.CYAN, colors.WHITE]


def get_color_hash(string: str) -> int:
    """Return a colors.* constant picked from the string's content.

    The same string gets the same colour for the lifetime of the
    process, which is enough to tell submissions apart in the log.

    """
    return _PALETTE[hash(string) % len(_PALETTE)]


class CustomFormatter(logging.Formatter):
    """Format records as "<time> - <LEVEL> [<submission>] [<operation>]
    <message>".

    The bracketed parts only appear when the record carries them. With
    colors, the level gets a fixed colour per severity and the
    bracketed parts one derived from their text.

    """
    SEVERITY_COLORS = {logging.CRITICAL: colors.RED,
                       logging.ERROR: colors.RED,
                       logging.WARNING: colors.YELLOW,
                       logging.INFO: colors.GREEN,
                       logging.DEBUG: colors.CYAN}

    def __init__(self, colors: bool = False):
        super().__init__()
        self.colors = colors

    def _paint(self, text: str, color: int) -> str:
        if not self.colors:
            return text
        return add_color_to_string(text, color, bold=True, force=True)

    def format(self, record):
        record.message = record.getMessage()
        record.asctime = self.formatTime(record, self.datefmt)

        parts = [self._paint(self.get_severity(record),
                             self.SEVERITY_COLORS.get(record.levelno,
                                                      colors.WHITE))]
        for context in (self.get_coordinates(record),
                        self.get_operation(record)):
            context = context.strip()
            if context != "":
                parts.append(
                    "[%s]" % self._paint(context, get_color_hash(context)))
        parts.append(record.message)
        text = " ".join(parts)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            text = text.rstrip("\n") + "\n" + record.exc_text
        return text

    def get_severity(self, record) -> str:
        return "%s - %s" % (record.asctime, record.levelname)

    def get_coordinates(self, record) -> str:
        """Return the submission the record refers to, if any."""
        return getattr(record, "submission", "")

    def get_operation(self, record) -> str:
        """Return the operation passed in the logger call, if any."""
        return getattr(record, "operation", "")


class DetailedFormatter(CustomFormatter):
    """CustomFormatter also telling where the record was emitted."""

    def get_coordinates(self, record) -> str:
        thread = record.threadName.replace("Thread", "") \
            .replace("Dummy-", "")
        module = record.filename.removesuffix(".py")
        return "%s %s %s::%s" % (super().get_coordinates(record), thread,
                                 module, record.funcName)


class OperationAdapter(logging.LoggerAdapter):
    """Logger wrapper tagging every message with an operation.

    The operation goes into the "operation" key of "extra", unless the
    call sets one explicitly.

    """

    def __init__(self, logger: logging.Logger, operation: str):
        """Init.

        operation: human-readable description of what is being done
            while logging through this adapter.

        """
        super().__init__(logger, {"operation": operation})
        self.operation = operation

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("operation", self.operation)
        return msg, kwargs


root_logger = logging.getLogger()
root_logger.setLevel(logging.DEBUG)

# Everything from INFO up goes to stdout.
shell_handler = StreamHandler(sys.stdout)
shell_handler.setLevel(logging.INFO)
shell_handler.setFormatter(CustomFormatter(has_color_support(sys.stdout)))
root_logger.addHandler(shell_handler)


def set_detailed_logs(detailed: bool):
    """Switch the shell handler to DetailedFormatter, or back."""
    formatter_class = DetailedFormatter if detailed else CustomFormatter
    shell_handler.setFormatter(
        formatter_class(has_color_support(sys.stdout)))
