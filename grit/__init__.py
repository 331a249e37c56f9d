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

# As this package initialization code is run by all code that imports
# something in grit.* it's the best place to setup the logging handlers.
# By importing the log module we install a handler on stdout.
import grit.log


# Define what this package will provide.

__all__ = [
    "__version__",
    # log
    # Nothing intended for external use, no need to advertise anything.
    # conf
    "ConfigError", "config",
    # util
    "rmtree", "utf8_decoder",
    # plugin
    "plugin_list",
]


__version__ = "1.0.0"


from .conf import ConfigError, config
from .util import rmtree, utf8_decoder
from .plugin import plugin_list
