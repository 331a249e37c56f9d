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

"""Turn what a compiler printed into a CompilerOutput.

Running the compiler is someone else's job; these functions only
read the captured diagnostics stream (usually stderr), one line per
item, and sort it into errors, warnings and infos.

"""

import logging
import re
from collections.abc import Callable, Iterable

from grit.grading import Language
from .results import CompilerOutput


logger = logging.getLogger(__name__)


__all__ = [
    "BadFlagError", "split_javac_output", "split_gcc_output",
    "split_ghc_output", "SPLITTERS",
    "build_compiler_output", "compiler_not_invoked",
    "compiler_stream_broken",
]


class BadFlagError(Exception):
    """The compiler rejected one of the flags it was given."""
    pass


_JAVAC_BAD_FLAG = re.compile(r"(?:javac|error): invalid flag:.*")
_JAVAC_CARET = re.compile(r"\s*\^\s*")
_JAVAC_NOTE = re.compile(r"(?:Note|javac|warning): .*")
_JAVAC_WARNING_HEAD = re.compile(r"[^:]+:\d+: warning: .*")

_GCC_BAD_FLAG = re.compile(
    r"(?:gcc|g\+\+|cc1\w*): error: unrecognized command[- ]line option.*")
_GCC_DIAGNOSTIC = re.compile(
    r"(?:[^:\s][^:]*:)(?:\d+:){0,2}\s*(?:fatal )?(error|warning|note):.*")
_GCC_CONTEXT = re.compile(r"In file included from .*|[^:]+: (?:In|At) .*")

_GHC_BAD_FLAG = re.compile(
    r"ghc: unrecognised flag:.*|<command line>: does not exist:.*")


def split_javac_output(lines: Iterable[str], output: CompilerOutput):
    """Sort javac diagnostics into output.

    A diagnostic spans several lines and ends with the line holding
    only the caret pointing at the faulty column; it is an error unless
    its first line says "warning:". "Note:" lines (e.g.
    deprecation notices) and javac's own complaints are warnings.

    raise (BadFlagError): if javac reports an invalid flag.

    """
    current: list[str] = []
    for line in lines:
        if _JAVAC_BAD_FLAG.fullmatch(line):
            raise BadFlagError("Flag not supported. " + line)
        elif _JAVAC_CARET.fullmatch(line):
            current.append(line)
            if _JAVAC_WARNING_HEAD.fullmatch(current[0]):
                output.add_warning("\n".join(current))
            else:
                output.add_error("\n".join(current))
            current = []
        elif _JAVAC_NOTE.fullmatch(line) and not current:
            output.add_warning(line)
        else:
            current.append(line)
    if current:
        # Summary lines like "1 error" and leftovers without a caret.
        output.add_info("\n".join(current))


def split_gcc_output(lines: Iterable[str], output: CompilerOutput):
    """Sort gcc (or g++) diagnostics into output.

    A diagnostic starts with "<file>:<line>:<col>: error|warning|note:"
    and includes the following lines (source excerpt, caret, fix-it
    hints) up to the next diagnostic. Context lines such as "In
    function 'main':" preceding a diagnostic are attached to it.

    raise (BadFlagError): if gcc reports an unrecognized option.

    """
    adders = {"error": output.add_error,
              "warning": output.add_warning,
              "note": output.add_info}
    kind: str | None = None
    current: list[str] = []

    def flush():
        if current:
            adders[kind or "note"]("\n".join(current))

    for line in lines:
        if _GCC_BAD_FLAG.fullmatch(line):
            raise BadFlagError("Flag not supported. " + line)
        if _GCC_CONTEXT.fullmatch(line):
            if kind is not None:
                flush()
                current = []
                kind = None
            current.append(line)
            continue
        match = _GCC_DIAGNOSTIC.fullmatch(line)
        if match is not None:
            if kind is not None:
                flush()
                current = []
            kind = match.group(1)
            current.append(line)
        else:
            current.append(line)
    flush()


def split_ghc_output(lines: Iterable[str], output: CompilerOutput):
    """Sort ghc diagnostics into output.

    ghc separates its messages with blank lines; every message, however
    many lines it spans, is one error.

    raise (BadFlagError): if ghc reports an unrecognised flag or a
        missing path given on the command line.

    """
    current: list[str] = []
    for line in lines:
        if _GHC_BAD_FLAG.fullmatch(line):
            raise BadFlagError("Flag not supported. " + line)
        elif line.strip() == "":
            if current:
                output.add_error("\n".join(current))
            current = []
        else:
            current.append(line)
    if current:
        output.add_error("\n".join(current))


SPLITTERS: dict[str, Callable[[Iterable[str], CompilerOutput], None]] = {
    "javac": split_javac_output,
    "gcc": split_gcc_output,
    "ghc": split_ghc_output,
}


def _every_line_is_an_error(lines: Iterable[str], output: CompilerOutput):
    for line in lines:
        if line.strip() != "":
            output.add_error(line)


def build_compiler_output(
    lines: Iterable[str], language: Language,
    warnings_break_clean: bool | None = None
) -> CompilerOutput:
    """Build the CompilerOutput of a compiler that ran to completion.

    lines: the diagnostics printed by the compiler, without newlines.
    language: the language that was compiled; its compiler_family
        chooses how to read lines. Without one, every non-blank line
        is an error.
    warnings_break_clean: see CompilerOutput.update_clean.

    raise (BadFlagError): if the compiler rejected a flag.

    """
    lines = list(lines)
    output = CompilerOutput()
    output.compiler_invoked = True
    splitter = SPLITTERS.get(language.compiler_family,
                             _every_line_is_an_error)
    splitter(lines, output)
    output.update_clean(warnings_break_clean)
    logger.debug("Compiler output for %s: %d errors, %d warnings.",
                 language.name, len(output.errors), len(output.warnings))
    return output


def compiler_not_invoked() -> CompilerOutput:
    """Output for a compiler that could not even be started."""
    return CompilerOutput()


def compiler_stream_broken(lines: Iterable[str] = ()) -> CompilerOutput:
    """Output for a compiler whose stream broke while being read.

    lines: whatever was read before the failure, kept as infos.

    """
    output = CompilerOutput()
    output.compiler_invoked = True
    output.stream_broken = True
    for line in lines:
        output.add_info(line)
    return output
