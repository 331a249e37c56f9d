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

"""Cheap admissibility check: does a tree contain any source file at
all of the expected language?

This is a heuristic to avoid compiling and testing obviously empty or
wrong submissions, not a validation: I/O problems while walking are
logged and the unreadable part of the tree is simply not searched.

"""

import logging
import os
import re

from grit.grading.languagemanager import get_language


logger = logging.getLogger(__name__)


__all__ = ["SubmissionDirectoryWalker", "check_location"]


class SubmissionDirectoryWalker:
    """Depth-first search for the first file matching a pattern.

    Entries of a directory are visited in name order, files and
    subdirectories alike; symbolic links to directories are not
    entered. The walk stops at the first match.

    A walker is good for one search only: once matches_found is set it
    is never cleared, and walking again does nothing.

    """

    def __init__(self, pattern: re.Pattern):
        """Init.

        pattern: matched (fullmatch) against the path of each file.

        """
        self._pattern = pattern
        self._matches_found = False
        # Number of files looked at, for diagnostics. It is not the whole
        # cost: each directory is listed and sorted in full before its
        # first entry is visited, so a flat root of n entries costs
        # O(n log n) even when the first file matches.
        self.visited_files = 0

    @property
    def matches_found(self) -> bool:
        return self._matches_found

    def visit_file(self, path: str) -> bool:
        """Look at one file; return whether to keep walking."""
        self.visited_files += 1
        if self._pattern.fullmatch(path):
            self._matches_found = True
            return False
        return True

    def walk(self, root: str):
        """Walk root until a match is found or the tree is exhausted."""
        # A stack of iterators over sorted directory listings.
        stack = [iter(self._list(root))]
        while stack and not self._matches_found:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as error:
                logger.error("Could not stat %s while checking for "
                             "plausibility: %s", entry.path, error)
                continue
            if is_dir:
                stack.append(iter(self._list(entry.path)))
            elif not self.visit_file(entry.path):
                break

    @staticmethod
    def _list(path: str) -> list[os.DirEntry]:
        try:
            with os.scandir(path) as it:
                return sorted(it, key=lambda entry: entry.name)
        except OSError as error:
            logger.error("Could not walk submission %s while checking for "
                         "plausibility: %s", path, error)
            return []


def check_location(source_location: str, language_name: str) -> bool:
    """Return whether source_location holds at least one source file
    of the given language, at any depth.

    source_location: root of the submission tree.
    language_name: name of the expected language (see
        grit.grading.languagemanager).

    raise (UnsupportedLanguageError): if the language is unknown.

    """
    language = get_language(language_name)
    walker = SubmissionDirectoryWalker(language.source_pattern)
    walker.walk(source_location)
    logger.debug("Plausibility of %s as %s: %s (%d files visited).",
                 source_location, language.name, walker.matches_found,
                 walker.visited_files)
    return walker.matches_found
