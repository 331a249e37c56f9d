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

"""The submission and its author, as seen by the intake pipeline.

"""

from grit.checking.results import CheckingResult


__all__ = ["Student", "Submission"]


class Student:
    """Author of a submission, identified by e-mail address."""

    def __init__(self, name: str, email: str):
        self.name = name
        self.email = email

    def __eq__(self, other):
        if not isinstance(other, Student):
            return NotImplemented
        return self.email == other.email

    def __hash__(self):
        return hash(self.email)

    def __repr__(self):
        return "<Student %s <%s>>" % (self.name, self.email)


class Submission:
    """One unpacked submission and what has been found out about it.

    Two submissions are equal when they have the same fingerprint,
    whatever their location or author; a submission without a
    fingerprint is only equal to itself.

    The fingerprint and the plausibility verdict are assigned once;
    the checking result is replaced by each verification pass.

    """

    def __init__(self, source_location: str, student: Student | None = None):
        """Init.

        source_location: directory holding the unpacked submission.
        student: the author, if known.

        """
        self.source_location = source_location
        self.student = student
        self._fingerprint: str | None = None
        self._plausible: bool | None = None
        self.checking_result: CheckingResult | None = None

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    @fingerprint.setter
    def fingerprint(self, value: str):
        if self._fingerprint is not None:
            raise ValueError("Fingerprint of %s already set."
                             % self.source_location)
        self._fingerprint = value

    @property
    def plausible(self) -> bool | None:
        """Whether the tree looks like a submission in the expected
        language; None until checked.

        """
        return self._plausible

    @plausible.setter
    def plausible(self, value: bool):
        if self._plausible is not None:
            raise ValueError("Plausibility of %s already decided."
                             % self.source_location)
        self._plausible = bool(value)

    def __eq__(self, other):
        if not isinstance(other, Submission):
            return NotImplemented
        if self._fingerprint is None or other._fingerprint is None:
            return self is other
        return self._fingerprint == other._fingerprint

    def __hash__(self):
        if self._fingerprint is None:
            return id(self)
        return hash(self._fingerprint)

    def __repr__(self):
        return "<Submission %s fingerprint=%s>" % (self.source_location,
                                                   self._fingerprint)
