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

"""A disposable, private namespace to load untrusted Python code into.

A LoadingContext knows the modules found under two roots (the
verifier's tests and the submission's compiled artifacts), keyed by
their qualified name. Modules loaded through it live only in the
context: they are never added to sys.modules, and the import
statements they execute look into the context first. Anything the
context does not know about (the standard library, installed
packages) is imported normally.

"""

import builtins
import importlib.machinery
import logging
import os
import re
import types

from grit.grading.languages.python3_cpython import Python3CPython
from grit.util import utf8_decoder


logger = logging.getLogger(__name__)


__all__ = [
    "ArtifactLoadError", "LoadingContext", "find_files",
    "qualified_name_from_path", "qualified_name_from_source",
    "SOURCE_SUFFIXES", "ARTIFACT_SUFFIXES",
]


_PYTHON = Python3CPython()
SOURCE_SUFFIXES = tuple(_PYTHON.source_extensions)
BYTECODE_SUFFIXES = tuple(_PYTHON.object_extensions)
ARTIFACT_SUFFIXES = SOURCE_SUFFIXES + BYTECODE_SUFFIXES

# The namespace declaration of a test source: a module-level
# assignment of a dotted name to __package__.
_PACKAGE_DECLARATION = re.compile(
    r"__package__\s*=\s*(['\"])([A-Za-z_][\w.]*)\1\s*(?:#.*)?")

_CACHE_DIR = "__pycache__"


class ArtifactLoadError(ImportError):
    """An artifact could not be resolved, or failed while loading."""
    pass


def find_files(root: str, suffixes: tuple[str, ...]) -> list[str]:
    """Return the files under root ending with one of suffixes.

    The walk is depth-first, in name order; __pycache__ directories
    are skipped.

    """
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name != _CACHE_DIR)
        for filename in sorted(filenames):
            if filename.endswith(suffixes):
                found.append(os.path.join(dirpath, filename))
    return found


def qualified_name_from_path(root: str, path: str) -> str:
    """Return the qualified name of the module at path under root.

    Path separators become dots and the extension is dropped, so
    root/pkg/mod.py is "pkg.mod"; a package's __init__ file stands for
    the package itself.

    """
    rel_path = os.path.splitext(os.path.relpath(path, root))[0]
    parts = rel_path.split(os.sep)
    if len(parts) > 1 and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def qualified_name_from_source(path: str) -> str:
    """Return the qualified name a test source declares for itself.

    The first line assigning a dotted name to __package__ gives the
    namespace, to which the file's base name is appended; without such
    a line, the base name alone is the qualified name.

    raise (OSError): if the file cannot be read.
    raise (TypeError): if its content cannot be decoded.

    """
    base_name = os.path.splitext(os.path.basename(path))[0]
    with open(path, "rb") as f:
        text = utf8_decoder(f.read())
    for line in text.splitlines():
        match = _PACKAGE_DECLARATION.fullmatch(line.strip())
        if match is not None:
            return "%s.%s" % (match.group(2), base_name)
    return base_name


def _scan(root: str) -> dict[str, str]:
    """Map qualified names to the artifacts found under root.

    When both a source and its sourceless bytecode exist, the source
    wins.

    """
    artifacts: dict[str, str] = {}
    for path in find_files(root, ARTIFACT_SUFFIXES):
        name = qualified_name_from_path(root, path)
        if name in artifacts and artifacts[name].endswith(SOURCE_SUFFIXES):
            continue
        artifacts[name] = path
    return artifacts


class LoadingContext:
    """Private module namespace scoped to a test root and a submission
    root.

    Use it as a context manager: the artifact index is built on
    entering and everything is released on exit, whatever happens in
    between. The test root takes precedence when both roots provide
    the same qualified name.

    """

    def __init__(self, test_root: str, submission_root: str):
        self.test_root = test_root
        self.submission_root = submission_root
        self._artifacts: dict[str, str] = {}
        self._packages: set[str] = set()
        self._modules: dict[str, types.ModuleType] = {}
        self._opened = False
        self._closed = False

        # The builtins seen by loaded code, so that their imports go
        # through the context.
        self._builtins = dict(builtins.__dict__)
        self._builtins["__import__"] = self._import

    def __enter__(self) -> "LoadingContext":
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def open(self):
        """Index the artifacts of both roots."""
        if self._closed:
            raise ArtifactLoadError("Loading context already closed.")
        artifacts = _scan(self.submission_root)
        artifacts.update(_scan(self.test_root))
        self._artifacts = artifacts
        self._packages = set()
        for name in artifacts:
            parts = name.split(".")
            for i in range(1, len(parts)):
                self._packages.add(".".join(parts[:i]))
        self._opened = True
        logger.debug("Loading context over %s and %s: %d artifacts.",
                     self.test_root, self.submission_root, len(artifacts))

    def close(self):
        """Forget every artifact and loaded module."""
        self._modules.clear()
        self._artifacts = {}
        self._packages = set()
        self._closed = True

    @property
    def names(self) -> list[str]:
        """The qualified names of the known artifacts."""
        return sorted(self._artifacts)

    def __contains__(self, name: str) -> bool:
        return name in self._artifacts or name in self._packages

    def load(self, name: str) -> types.ModuleType:
        """Return the module called name, loading it if needed.

        Parent packages are loaded first, and each module is bound as
        an attribute of its parent.

        raise (ArtifactLoadError): if the context is not open, if name
            is unknown, or if running the module's code fails.

        """
        if self._closed or not self._opened:
            raise ArtifactLoadError(
                "Loading context is not open, cannot load %s." % name,
                name=name)
        if name in self._modules:
            return self._modules[name]

        parent_name, _, child_name = name.rpartition(".")
        parent = self.load(parent_name) if parent_name != "" else None
        if name in self._modules:
            # Loading the parent package imported us already.
            return self._modules[name]

        if name in self._artifacts:
            module = self._execute(name, self._artifacts[name])
        elif name in self._packages:
            module = types.ModuleType(name)
            module.__path__ = []
            module.__package__ = name
            self._modules[name] = module
        else:
            raise ArtifactLoadError("No artifact named %s." % name,
                                    name=name)

        if parent is not None:
            setattr(parent, child_name, module)
        return module

    def _execute(self, name: str, path: str) -> types.ModuleType:
        module = types.ModuleType(name)
        module.__file__ = path
        module.__builtins__ = self._builtins
        if os.path.splitext(os.path.basename(path))[0] == "__init__":
            module.__path__ = [os.path.dirname(path)]
            module.__package__ = name
        else:
            module.__package__ = name.rpartition(".")[0]

        # Registered before running, so that import cycles see the
        # partially initialized module, as with sys.modules.
        self._modules[name] = module
        try:
            exec(self._get_code(name, path), module.__dict__)
        except (Exception, SystemExit) as error:
            del self._modules[name]
            raise ArtifactLoadError("Cannot load %s from %s: %r"
                                    % (name, path, error),
                                    name=name, path=path) from error
        return module

    @staticmethod
    def _get_code(name: str, path: str) -> types.CodeType:
        # Compiling ourselves instead of using SourceFileLoader avoids
        # writing __pycache__ directories into the roots.
        if path.endswith(BYTECODE_SUFFIXES):
            loader = importlib.machinery.SourcelessFileLoader(name, path)
            return loader.get_code(name)
        with open(path, "rb") as f:
            return compile(f.read(), path, "exec", dont_inherit=True)

    def _import(self, name, globals=None, locals=None, fromlist=(),
                level=0):
        """Replacement for __import__ inside the context."""
        if level > 0:
            package = (globals or {}).get("__package__")
            if not package:
                raise ImportError(
                    "attempted relative import with no known parent package")
            bits = package.rsplit(".", level - 1)
            if len(bits) < level:
                raise ImportError(
                    "attempted relative import beyond top-level package")
            name = "%s.%s" % (bits[0], name) if name else bits[0]
        elif name.partition(".")[0] not in self:
            return builtins.__import__(name, globals, locals, fromlist,
                                       level)

        module = self.load(name)
        if not fromlist:
            return self._modules[name.partition(".")[0]]
        for item in fromlist:
            submodule = "%s.%s" % (name, item)
            if item != "*" and not hasattr(module, item) \
                    and submodule in self:
                self.load(submodule)
        return module
