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

"""Tests for running the verifier's tests against a submission."""

import sys
import unittest

from grit.checking.loader import ArtifactLoadError
from grit.checking.testing import PythonProjectTester
from grittestsuite.unit_tests.filesystemmixin import FileSystemMixin


SUBMISSION = {
    "calc.py": "def add(a, b):\n"
               "    return a + b\n",
    "shapes/__init__.py": "",
    "shapes/square.py": "from .util import sq\n"
                        "\n"
                        "def area(side):\n"
                        "    return sq(side)\n",
    "shapes/util.py": "def sq(x):\n"
                      "    return x * x\n",
}

TESTS = {
    "a_calc_test.py": "import unittest\n"
                      "import calc\n"
                      "\n"
                      "class CalcTest(unittest.TestCase):\n"
                      "    def test_add(self):\n"
                      "        self.assertEqual(calc.add(1, 2), 3)\n"
                      "\n"
                      "    def test_add_wrong(self):\n"
                      "        self.assertEqual(calc.add(1, 1), 3)\n",
    "b_broken_test.py": "import unittest\n"
                        "class Broken(unittest.TestCase:\n",
    "checks/c_shapes_test.py": "__package__ = \"checks\"\n"
                               "\n"
                               "from unittest import TestCase\n"
                               "from shapes.square import area\n"
                               "\n"
                               "class ShapesTest(TestCase):\n"
                               "    def test_area(self):\n"
                               "        self.assertEqual(area(3), 9)\n",
}


class TestPythonProjectTester(FileSystemMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.submission = self.write_tree("submission", SUBMISSION)

    def test_no_tests(self):
        for location in [None, "", self.get_path("missing")]:
            output = PythonProjectTester(location).test_submission(
                self.submission)
            self.assertIs(output.did_test, False)
            self.assertEqual(output.test_count, 0)

    def test_no_test_sources(self):
        tests = self.write_tree("tests", {"data.txt": "1 2\n",
                                          "__init__.py": ""})
        output = PythonProjectTester(tests).test_submission(self.submission)
        self.assertIs(output.did_test, False)

    def test_malformed_test_artifact_is_skipped(self):
        tests = self.write_tree("tests", TESTS)
        with self.assertLogs("grit.checking.testing", "ERROR") as logs:
            output = PythonProjectTester(tests).test_submission(
                self.submission)
        self.assertEqual(len(logs.output), 1)
        self.assertIn("b_broken_test.py", logs.output[0])

        self.assertIs(output.did_test, True)
        self.assertEqual([result.name for result in output.results],
                         ["a_calc_test", "checks.c_shapes_test"])
        calc, shapes = output.results
        self.assertEqual(calc.run_count, 2)
        self.assertEqual(len(calc.failures), 1)
        self.assertFalse(calc.successful)
        self.assertEqual(shapes.run_count, 1)
        self.assertTrue(shapes.successful)
        self.assertEqual(output.test_count, 2)
        self.assertEqual(output.passed_test_count, 1)
        self.assertEqual(output.failed_test_count, 1)

    def test_declared_package_must_match_location(self):
        tests = self.write_tree("tests", {
            "misplaced_test.py": TESTS["checks/c_shapes_test.py"],
        })
        with self.assertLogs("grit.checking.testing", "ERROR"):
            output = PythonProjectTester(tests).test_submission(
                self.submission)
        self.assertIs(output.did_test, True)
        self.assertEqual(output.results, ())

    def test_exiting_test_module_is_skipped(self):
        tests = self.write_tree("tests", {
            "exit_test.py": "import sys\nsys.exit(0)\n",
            "ok_test.py": TESTS["a_calc_test.py"],
        })
        with self.assertLogs("grit.checking.testing", "ERROR"):
            output = PythonProjectTester(tests).test_submission(
                self.submission)
        self.assertEqual([result.name for result in output.results],
                         ["ok_test"])

    def test_submission_load_failure_is_fatal(self):
        self.write_file("submission/broken.py", "raise ImportError('x')\n")
        tests = self.write_tree("tests", TESTS)
        with self.assertRaises(ArtifactLoadError):
            PythonProjectTester(tests).test_submission(self.submission)

    def test_missing_submission(self):
        tests = self.write_tree("tests", TESTS)
        with self.assertRaises(ArtifactLoadError):
            PythonProjectTester(tests).test_submission(
                self.get_path("missing"))

    def test_tests_take_precedence(self):
        self.write_file("submission/fixture.py", "VALUE = 'submission'\n")
        tests = self.write_tree("tests", {
            "fixture.py": "VALUE = 'tests'\n",
            "fixture_test.py": "import unittest\n"
                               "import fixture\n"
                               "\n"
                               "class FixtureTest(unittest.TestCase):\n"
                               "    def test_value(self):\n"
                               "        self.assertEqual(fixture.VALUE,"
                               " 'tests')\n",
        })
        output = PythonProjectTester(tests).test_submission(self.submission)
        results = {result.name: result for result in output.results}
        self.assertTrue(results["fixture_test"].successful)
        # Helper modules count as (empty) test artifacts.
        self.assertEqual(results["fixture"].run_count, 0)

    def test_isolation(self):
        tests = self.write_tree("tests", TESTS)
        before = self.list_tree("")
        with self.assertLogs("grit.checking.testing", "ERROR"):
            PythonProjectTester(tests).test_submission(self.submission)
        for name in ["calc", "shapes", "shapes.square", "a_calc_test",
                     "checks", "checks.c_shapes_test"]:
            self.assertNotIn(name, sys.modules)
        # In particular, no __pycache__ was written.
        self.assertEqual(self.list_tree(""), before)

    def test_repeatable(self):
        tests = self.write_tree("tests", {
            "counter_test.py": "import unittest\n"
                               "import calc\n"
                               "calc.CALLS = getattr(calc, 'CALLS', 0) + 1\n"
                               "\n"
                               "class CounterTest(unittest.TestCase):\n"
                               "    def test_fresh(self):\n"
                               "        self.assertEqual(calc.CALLS, 1)\n",
        })
        tester = PythonProjectTester(tests)
        for _ in range(2):
            output = tester.test_submission(self.submission)
            self.assertEqual(output.passed_test_count, 1)


if __name__ == "__main__":
    unittest.main()
