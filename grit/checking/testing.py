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

"""Running the verifier's unit tests against a compiled submission.

"""

import logging
import os
import unittest
from abc import ABCMeta, abstractmethod

from grit.log import OperationAdapter
from .loader import ARTIFACT_SUFFIXES, SOURCE_SUFFIXES, ArtifactLoadError, \
    LoadingContext, find_files, qualified_name_from_path, \
    qualified_name_from_source
from .results import TestOutput, TestRunResult


logger = logging.getLogger(__name__)


__all__ = ["Tester", "PythonProjectTester"]


class Tester(metaclass=ABCMeta):
    """Runs some tests against the compiled form of a submission."""

    @abstractmethod
    def test_submission(self, submission_binaries: str) -> TestOutput:
        """Test the compiled submission found at submission_binaries.

        raise (ArtifactLoadError): if the submission itself cannot be
            loaded; no results are produced in that case.

        """
        pass


class PythonProjectTester(Tester):
    """Run unittest modules from a tests directory against a submission.

    Every .py file under the tests directory is a test artifact. Its
    qualified name is its base name, inside the package declared by a
    line `__package__ = "some.package"` if the file has one. Test
    artifacts and the submission share one LoadingContext, in which the
    test artifacts shadow submission modules of the same name.

    """

    def __init__(self, tests_location: str | None):
        """Init.

        tests_location: directory holding the tests, or None if the
            verifier has no tests for this exercise.

        """
        self.tests_location = tests_location

    def _test_sources(self) -> list[str]:
        if not self.tests_location or not os.path.isdir(self.tests_location):
            return []
        return [path for path in find_files(self.tests_location,
                                            SOURCE_SUFFIXES)
                if os.path.basename(path) != "__init__.py"]

    def test_submission(self, submission_binaries: str) -> TestOutput:
        test_sources = self._test_sources()
        if len(test_sources) == 0:
            logger.info("No tests to run against %s.", submission_binaries)
            return TestOutput.not_tested()
        if not os.path.isdir(submission_binaries):
            raise ArtifactLoadError("Compiled submission not found: %s"
                                    % submission_binaries,
                                    path=submission_binaries)

        results = []
        with LoadingContext(self.tests_location, submission_binaries) \
                as context:
            # Any submission module that does not load is fatal.
            for path in find_files(submission_binaries, ARTIFACT_SUFFIXES):
                context.load(qualified_name_from_path(submission_binaries,
                                                      path))

            for path in test_sources:
                result = self._run_test_artifact(context, path)
                if result is not None:
                    results.append(result)

        logger.info("Ran %d test artifacts out of %d against %s.",
                    len(results), len(test_sources), submission_binaries)
        return TestOutput(results, True)

    @staticmethod
    def _run_test_artifact(context: LoadingContext,
                           path: str) -> TestRunResult | None:
        """Load and run one test artifact.

        return: the result, or None if the artifact could not be loaded
            or run; the problem is logged.

        """
        operation_logger = OperationAdapter(
            logger, "running %s" % os.path.basename(path))
        try:
            name = qualified_name_from_source(path)
            module = context.load(name)
            suite = unittest.TestLoader().loadTestsFromModule(module)
            result = unittest.TestResult()
            suite.run(result)
        except (Exception, SystemExit):
            operation_logger.error("Test artifact %s could not be loaded or "
                                   "run, skipping it.", path, exc_info=True)
            return None

        operation_logger.info("%d tests run, %d failures, %d errors.",
                              result.testsRun, len(result.failures),
                              len(result.errors))
        return TestRunResult.from_unittest(name, result)
