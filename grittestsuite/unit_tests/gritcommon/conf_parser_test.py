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

"""Tests for the configuration file parser."""

import unittest
from dataclasses import dataclass, field

from gritcommon.conf_parser import ConfigError, ConfigTypeError, \
    parse_config, parse_config_obj
from grittestsuite.unit_tests.filesystemmixin import FileSystemMixin


@dataclass
class Inner:
    depth: int = 2
    ratio: float = 0.5


@dataclass
class Outer:
    name: str
    global_: Inner = field(default_factory=Inner)
    tags: list[str] = field(default_factory=list)
    limits: dict[str, int] = field(default_factory=dict)
    staging: str | None = None


class TestParseConfigObj(unittest.TestCase):

    def test_defaults(self):
        config = parse_config_obj({"name": "x"}, Outer, "")
        self.assertEqual(config, Outer(name="x"))

    def test_full(self):
        config = parse_config_obj({
            "name": "x",
            "global": {"depth": 4, "ratio": 1},
            "tags": ["a", "b"],
            "limits": {"java": 3},
            "staging": "/tmp/s",
        }, Outer, "")
        self.assertEqual(config.global_, Inner(depth=4, ratio=1.0))
        self.assertIsInstance(config.global_.ratio, float)
        self.assertEqual(config.tags, ["a", "b"])
        self.assertEqual(config.limits, {"java": 3})
        self.assertEqual(config.staging, "/tmp/s")

    def test_missing_required(self):
        with self.assertRaisesRegex(ConfigError, "name"):
            parse_config_obj({}, Outer, "")

    def test_wrong_types(self):
        for data in [
            {"name": 3},
            {"name": "x", "global": {"depth": "4"}},
            {"name": "x", "global": {"depth": True}},
            {"name": "x", "global": {"ratio": False}},
            {"name": "x", "global": 4},
            {"name": "x", "tags": "a"},
            {"name": "x", "tags": [1]},
        ]:
            with self.assertRaises(ConfigTypeError):
                parse_config_obj(data, Outer, "")

    def test_error_path(self):
        with self.assertRaisesRegex(ConfigError, r"global\.depth"):
            parse_config_obj({"name": "x", "global": {"depth": "4"}},
                             Outer, "")

    def test_unknown_keys_are_ignored(self):
        with self.assertLogs("gritcommon.conf_parser", "WARNING") as logs:
            config = parse_config_obj({"name": "x", "colour": "red"},
                                      Outer, "")
        self.assertEqual(config, Outer(name="x"))
        self.assertIn("colour", logs.output[0])


class TestParseConfig(FileSystemMixin, unittest.TestCase):

    def test_success(self):
        path = self.write_file("grit.toml",
                               'name = "x"\n[global]\ndepth = 0\n')
        config = parse_config(path, Outer)
        self.assertEqual(config.global_.depth, 0)

    def test_missing_file(self):
        with self.assertRaises(SystemExit):
            parse_config(self.get_path("missing.toml"), Outer)

    def test_invalid_toml(self):
        path = self.write_file("grit.toml", "name = \n")
        with self.assertRaises(SystemExit):
            parse_config(path, Outer)

    def test_invalid_value(self):
        path = self.write_file("grit.toml", "name = 3\n")
        with self.assertRaises(SystemExit):
            parse_config(path, Outer)


if __name__ == "__main__":
    unittest.main()
