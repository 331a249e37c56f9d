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

"""Interfaces for supported programming languages."""

import logging
import re
from abc import ABCMeta, abstractmethod


logger = logging.getLogger(__name__)


class Language(metaclass=ABCMeta):
    """A supported programming language.

    GRIT does not compile anything itself; a language only tells which
    files belong to it and how its compiler talks.

    """

    @property
    @abstractmethod
    def name(self):
        """Returns the name of the language.

        Should be uniquely describing the language and the
        version/compiler used, for example "C++ / g++" better than
        "C++".

        return (str): the name

        """
        pass

    @property
    def source_extensions(self):
        """Extensions used for sources for this language (including the dot).

        The first one is the canonical one. Matching is
        case-insensitive.

        """
        return []

    @property
    def object_extensions(self):
        """Extensions of the compiled artifacts (including the dot)."""
        return []

    @property
    def compiler_family(self):
        """Name of the diagnostics format of the compiler, or None.

        One of the keys of grit.checking.compilation.SPLITTERS.

        """
        return None

    @property
    def source_pattern(self):
        """Regular expression matching the paths of source files.

        return (re.Pattern): a case-insensitive pattern, to be matched
            against the whole path.

        """
        alternatives = "|".join(re.escape(ext[1:])
                                for ext in self.source_extensions)
        return re.compile(r".+\.(?:%s)" % alternatives, re.IGNORECASE)

    # Languages are stateless singletons, so they can be compared and
    # hashed by class.

    @classmethod
    def __eq__(cls, other):
        return type(other) is cls

    @classmethod
    def __hash__(cls):
        return hash(cls)
