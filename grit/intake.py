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

"""Intake of submission archives, and the verification that follows.

A submission goes through the stages below, in order:
- the archive is extracted (nested archives included);
- the unpacked tree is fingerprinted;
- the tree is checked for plausibility;
- if plausible, the compiler output obtained by the caller is read
  and, if compilation succeeded, the tests are run.

A failure while extracting or fingerprinting fails the whole intake;
later failures only mark the submission.

"""

import logging

from grit import config
from grit.checking.loader import ArtifactLoadError
from grit.checking.plausibility import check_location
from grit.checking.results import CheckingResult, CompilerOutput, \
    TestOutput
from grit.checking.testing import Tester
from grit.grading.languagemanager import get_language
from grit.submission import Student, Submission
from gritcommon.archive import ArchiveExtractor
from gritcommon.digest import tree_digest


logger = logging.getLogger(__name__)


__all__ = ["SubmissionIntake", "make_extractor"]


def make_extractor() -> ArchiveExtractor:
    """Return an extractor configured from the [archive] section."""
    return ArchiveExtractor(
        depth_limit=config.archive.max_nesting_depth,
        staging_dir=config.archive.staging_dir,
        max_extracted_size=config.archive.max_extracted_size)


class SubmissionIntake:
    """Take submissions in, for one exercise in one language."""

    def __init__(self, extractor: ArchiveExtractor, language_name: str):
        """Init.

        extractor: used for every archive taken in.
        language_name: the language submissions are expected in.

        raise (UnsupportedLanguageError): if the language is unknown.

        """
        self.extractor = extractor
        # Fail now rather than on the first submission.
        self.language = get_language(language_name)

    def intake(self, archive_path: str, output_dir: str,
               student: Student | None = None) -> Submission:
        """Extract, fingerprint and check the plausibility of an archive.

        archive_path: the submitted archive.
        output_dir: where to unpack it; it becomes the submission's
            source location.
        student: the author of the submission.

        return: the new submission, with fingerprint and plausibility
            set.

        raise (ConfigError, FileNotFoundError, ArchiveException,
            OSError): if the archive cannot be extracted or the tree
            cannot be fingerprinted.

        """
        self.extractor.extract(archive_path, output_dir)
        submission = Submission(output_dir, student)
        extra = {"submission": output_dir}

        submission.fingerprint = tree_digest(output_dir)
        submission.plausible = check_location(output_dir, self.language.name)
        # The extractor already warned about each member it kept as is.
        logger.info("Took in %s with fingerprint %s, %splausible, %d nested "
                    "archives kept as plain files.",
                    archive_path, submission.fingerprint,
                    "" if submission.plausible else "not ",
                    len(self.extractor.failed_files), extra=extra)
        return submission

    def verify(self, submission: Submission,
               compiler_output: CompilerOutput | None, tester: Tester,
               binaries_location: str | None = None) -> CheckingResult:
        """Check a submission taken in by intake().

        submission: the submission to check.
        compiler_output: the outcome of compiling it, or None if it
            was not compiled.
        tester: runs the tests against the compiled submission.
        binaries_location: where the compiled submission is; defaults
            to the submission's source location.

        return: the checking result, also stored in the submission.

        """
        extra = {"submission": submission.source_location}
        if not submission.plausible:
            logger.info("Submission is not plausible, not checking it.",
                        extra=extra)
            result = CheckingResult.not_attempted()
        elif compiler_output is None \
                or not compiler_output.finalize().succeeded:
            logger.info("Compilation failed, not testing.", extra=extra)
            result = CheckingResult(
                compiler_output if compiler_output is not None
                else CompilerOutput(),
                TestOutput.not_tested())
        else:
            if binaries_location is None:
                binaries_location = submission.source_location
            try:
                test_output = tester.test_submission(binaries_location)
            except ArtifactLoadError:
                logger.error("Could not load the compiled submission, "
                             "testing aborted.", exc_info=True, extra=extra)
                test_output = TestOutput.aborted()
            result = CheckingResult(compiler_output, test_output)

        submission.checking_result = result
        return result
