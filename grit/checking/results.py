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

"""The verdict of one verification pass over one submission.

CompilerOutput is the accumulator filled by whoever runs the compiler;
it is frozen into a CompilerReport when the verdict is assembled. A
TestOutput is built once from the results of the test executor. A
CheckingResult pairs the two and never changes afterwards.

All the messages are human-readable text, one defect or event per
entry, meant to be shown to students as they are.

"""

import logging
import unittest
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


__all__ = [
    "CompilerOutput", "CompilerReport", "TestRunResult", "TestOutput",
    "CheckingResult",
]


@dataclass(frozen=True)
class CompilerReport:
    """Immutable snapshot of a CompilerOutput."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    infos: tuple[str, ...] = ()
    compiler_invoked: bool = False
    stream_broken: bool = False
    clean: bool = False

    @property
    def succeeded(self) -> bool:
        """Whether the compilation produced usable artifacts.

        That is, the compiler ran, its output was read completely and
        it reported no errors. Warnings do not matter here.

        """
        return self.compiler_invoked and not self.stream_broken \
            and len(self.errors) == 0


class CompilerOutput:
    """Accumulate the diagnostics of one compilation attempt.

    The three flags start as False, meaning "not attempted yet". The
    message lists can only grow.

    """

    def __init__(self):
        self.compiler_invoked = False
        self.stream_broken = False
        self.clean = False
        self._errors: list[str] = []
        self._warnings: list[str] = []
        self._infos: list[str] = []

    def add_error(self, message: str):
        self._errors.append(message)

    def add_warning(self, message: str):
        self._warnings.append(message)

    def add_info(self, message: str):
        self._infos.append(message)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(self._errors)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)

    @property
    def infos(self) -> tuple[str, ...]:
        return tuple(self._infos)

    def update_clean(self, warnings_break_clean: bool | None = None):
        """Set the clean flag from the messages collected so far.

        A compilation is clean if the compiler ran, its output was
        read entirely, there are no errors and, if warnings_break_clean
        is true, no warnings.

        warnings_break_clean: None to use the configured value
            (checking.warnings_break_clean).

        """
        if warnings_break_clean is None:
            from grit import config
            warnings_break_clean = config.checking.warnings_break_clean
        self.clean = self.compiler_invoked and not self.stream_broken \
            and not self._errors \
            and not (warnings_break_clean and self._warnings)

    def finalize(self) -> CompilerReport:
        """Return an immutable copy of the current state."""
        return CompilerReport(errors=tuple(self._errors),
                              warnings=tuple(self._warnings),
                              infos=tuple(self._infos),
                              compiler_invoked=self.compiler_invoked,
                              stream_broken=self.stream_broken,
                              clean=self.clean)


@dataclass(frozen=True)
class TestRunResult:
    """Outcome of running the tests of one test artifact.

    name: qualified name of the test artifact.
    run_count: number of test cases that ran.
    failures: one message per failed assertion.
    errors: one message per test case that raised.
    skipped: number of skipped test cases.

    """
    __test__ = False

    name: str
    run_count: int
    failures: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    skipped: int = 0

    @property
    def successful(self) -> bool:
        return len(self.failures) == 0 and len(self.errors) == 0

    @staticmethod
    def from_unittest(name: str,
                      result: unittest.TestResult) -> "TestRunResult":
        """Summarize a unittest result.

        name: qualified name of the test artifact.
        result: the result after running the artifact's suite.

        """
        def messages(pairs):
            return tuple("%s\n%s" % (test.id(), trace)
                         for test, trace in pairs)

        return TestRunResult(
            name=name,
            run_count=result.testsRun,
            failures=messages(result.failures)
            + messages((test, "Unexpected success")
                       for test in result.unexpectedSuccesses),
            errors=messages(result.errors),
            skipped=len(result.skipped))


class TestOutput:
    """The results of one test-execution attempt.

    did_test is True when testing took place, False when it did not
    (no verifier tests, or not attempted), and None when it was
    attempted but aborted because the submission itself could not be
    loaded. Unless did_test is True the results are always empty.

    The counters are computed once, here.

    """
    __test__ = False

    def __init__(self, results=None, did_test: bool | None = True):
        """Init.

        results ([TestRunResult]|None): the results, in execution
            order; ignored unless did_test is True.
        did_test: see the class docstring.

        """
        if did_test is True:
            self._results = tuple(results) if results is not None else ()
        else:
            self._results = ()
        self._did_test = did_test
        self._test_count = len(self._results)
        self._passed_test_count = sum(
            1 for result in self._results if result.successful)
        self._failed_test_count = self._test_count - self._passed_test_count

    @classmethod
    def not_tested(cls) -> "TestOutput":
        """Return the "no testing occurred" output."""
        return cls(None, False)

    @classmethod
    def aborted(cls) -> "TestOutput":
        """Return the output of a testing attempt that could not start."""
        return cls(None, None)

    @property
    def results(self) -> tuple[TestRunResult, ...]:
        return self._results

    @property
    def did_test(self) -> bool | None:
        return self._did_test

    @property
    def test_count(self) -> int:
        return self._test_count

    @property
    def passed_test_count(self) -> int:
        return self._passed_test_count

    @property
    def failed_test_count(self) -> int:
        return self._failed_test_count

    def __repr__(self):
        return "<TestOutput did_test=%r total=%d passed=%d failed=%d>" % (
            self._did_test, self._test_count, self._passed_test_count,
            self._failed_test_count)


@dataclass(frozen=True)
class CheckingResult:
    """The complete verdict of one verification pass.

    Passing a CompilerOutput freezes it, so that later changes to the
    accumulator are not seen here.

    """
    compiler_output: CompilerReport
    test_results: TestOutput = field(default_factory=TestOutput.not_tested)

    def __post_init__(self):
        if isinstance(self.compiler_output, CompilerOutput):
            object.__setattr__(self, "compiler_output",
                               self.compiler_output.finalize())

    @classmethod
    def not_attempted(cls) -> "CheckingResult":
        """Verdict of a submission that never entered verification."""
        return cls(CompilerReport(), TestOutput.not_tested())

    @property
    def compilation_succeeded(self) -> bool:
        return self.compiler_output.succeeded

    @property
    def passed(self) -> bool:
        """Whether the submission compiled and every test artifact that
        ran was successful (vacuously true if there were none).

        """
        return self.compilation_succeeded \
            and self.test_results.did_test is not None \
            and self.test_results.failed_test_count == 0
