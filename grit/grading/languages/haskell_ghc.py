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

"""Haskell programming language, compiled with ghc."""

from grit.grading import Language


__all__ = ["HaskellGhc"]


class HaskellGhc(Language):
    """This defines the Haskell / ghc language."""

    @property
    def name(self):
        """See Language.name."""
        return "Haskell / ghc"

    @property
    def source_extensions(self):
        """See Language.source_extensions."""
        return [".hs", ".lhs"]

    @property
    def object_extensions(self):
        """See Language.object_extensions."""
        return [".o", ".hi"]

    @property
    def compiler_family(self):
        """See Language.compiler_family."""
        return "ghc"
