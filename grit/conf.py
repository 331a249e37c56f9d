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

import dataclasses
import logging
import os
import sys
from dataclasses import dataclass

from grit.log import set_detailed_logs
from gritcommon import conf_parser
from gritcommon.conf_parser import ConfigError

logger = logging.getLogger(__name__)


__all__ = [
    "ConfigError", "GlobalConfig", "ArchiveConfig", "CheckingConfig",
    "Config", "make_config", "config",
]


def default_path(name):
    return os.path.join(sys.prefix, name)


@dataclass()
class GlobalConfig:
    temp_dir: str = "/tmp"
    stream_log_detailed: bool = False


@dataclass()
class ArchiveConfig:
    # Levels of archives-inside-archives that are extracted as well.
    max_nesting_depth: int = 2
    # Defaults to <global.temp_dir>/grit-staging.
    staging_dir: str | None = None
    # Max bytes written while extracting one submission.
    max_extracted_size: int = 256 * 1024 * 1024  # 256 MiB


@dataclass()
class CheckingConfig:
    # Whether a compilation with warnings (and no errors) is still
    # considered clean.
    warnings_break_clean: bool = True


field_helper = lambda T: dataclasses.field(default_factory=T)

@dataclass(kw_only=True)
class Config:
    global_: GlobalConfig = field_helper(GlobalConfig)
    archive: ArchiveConfig = field_helper(ArchiveConfig)
    checking: CheckingConfig = field_helper(CheckingConfig)

    def __post_init__(self):
        if self.archive.max_nesting_depth < 0:
            raise ConfigError("archive.max_nesting_depth must not be "
                              "negative")
        if self.archive.staging_dir is None:
            self.archive.staging_dir = os.path.join(
                self.global_.temp_dir, "grit-staging")

        # If the configuration says to print detailed log on stdout,
        # change the log configuration.
        set_detailed_logs(self.global_.stream_log_detailed)


def make_config() -> Config:
    # Default config file path can be overridden using environment
    # variable 'GRIT_CONFIG'.
    default_config_file = default_path("etc/grit.toml")
    config_file = os.environ.get("GRIT_CONFIG", default_config_file)

    if not os.path.exists(config_file):
        logger.debug("No configuration file at %s, using defaults.",
                     config_file)
        return Config()
    return conf_parser.parse_config(config_file, Config)


config = make_config()
