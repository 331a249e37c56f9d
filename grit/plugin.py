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

import logging

from importlib.metadata import entry_points


logger = logging.getLogger(__name__)


def plugin_list(entry_point_group: str) -> list[type]:
    """Return the list of plugin classes of the given group.

    The parts of GRIT that vary with the kind of submission (for now,
    the supported programming languages) are Python classes discovered
    through setuptools entry points. GRIT registers its own classes in
    setup.py; other distributions can add theirs to the same groups
    and, once installed, they are picked up automatically.

    entry_point_group: the name of the group of entry points that
        should be returned, e.g. grit.languages.

    return: the requested plugin classes. Entry points that fail to
        load are logged and left out.

    """
    classes = []
    for entry_point in entry_points(group=entry_point_group):
        try:
            classes.append(entry_point.load())
        except Exception:
            logger.warning(
                "Failed to load entry point %s for group %s from %s, "
                "provided by distribution %s.",
                entry_point.name,
                entry_point_group,
                entry_point.value,
                entry_point.dist.name if entry_point.dist else "unknown",
                exc_info=True,
            )
    return classes
