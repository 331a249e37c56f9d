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

"""Checks run on a submission: plausibility, compilation and tests."""

from .results import CheckingResult, CompilerOutput, CompilerReport, \
    TestOutput, TestRunResult
from .compilation import BadFlagError, build_compiler_output, \
    compiler_not_invoked, compiler_stream_broken
from .plausibility import SubmissionDirectoryWalker, check_location
from .loader import ArtifactLoadError, LoadingContext
from .testing import PythonProjectTester, Tester


__all__ = [
    # results.py
    "CheckingResult", "CompilerOutput", "CompilerReport", "TestOutput",
    "TestRunResult",
    # compilation.py
    "BadFlagError", "build_compiler_output", "compiler_not_invoked",
    "compiler_stream_broken",
    # plausibility.py
    "SubmissionDirectoryWalker", "check_location",
    # loader.py
    "ArtifactLoadError", "LoadingContext",
    # testing.py
    "PythonProjectTester", "Tester",
]
