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

"""Reading, extracting and creating (possibly nested) archives.

Submissions usually arrive as an archive, and students like to put
archives inside their archives. ArchiveExtractor unpacks them up to a
configured nesting depth, refusing members that would land outside the
output directory.

"""

from abc import ABCMeta, abstractmethod
from collections.abc import Iterable
import contextlib
import gzip
import logging
import lzma
import os
import re
import shutil
import subprocess
import sys
import tarfile
import tempfile
import typing
import zipfile
import zlib

import patoolib
from patoolib.util import PatoolError

from grit.util import rmtree
from gritcommon.conf_parser import ConfigError


logger = logging.getLogger(__name__)


# Longest first, so that ".tar.gz" wins over a hypothetical ".gz".
ARCHIVE_SUFFIXES = (
    ".tar.bz2", ".tar.gz", ".tar.xz", ".tbz2", ".tgz", ".txz", ".tar", ".zip",
)

_TAR_WRITE_MODES = {
    ".tar": "w",
    ".tar.gz": "w:gz", ".tgz": "w:gz",
    ".tar.bz2": "w:bz2", ".tbz2": "w:bz2",
    ".tar.xz": "w:xz", ".txz": "w:xz",
}

_WINDOWS_DRIVE = re.compile(r"[A-Za-z]:")

_COPY_BUFFER_SIZE = 64 * 1024

# What the stdlib readers raise on a damaged archive, either when
# opening it or while decompressing a member.
_CORRUPTION_ERRORS = (tarfile.TarError, zipfile.BadZipFile, zlib.error,
                      gzip.BadGzipFile, lzma.LZMAError, EOFError)

# Run by a child interpreter whose working directory is the folder
# being packed: patool stores member paths as given.
_PATOOL_CREATE = ("import sys, patoolib; "
                  "patoolib.create_archive(sys.argv[1], tuple(sys.argv[2:]), "
                  "interactive=False)")


class ArchiveException(Exception):
    """Exception for when the interaction with an archive is incorrect.

    """
    pass


class ArchiveFormatError(ArchiveException):
    """The file is not an archive of a supported kind."""
    pass


class ArchiveLimitError(ArchiveException):
    """Extracting the archive would exceed the configured size limit."""
    pass


def archive_suffix(name: str) -> str | None:
    """Return the archive suffix name ends with, if any.

    The comparison is case-insensitive; the returned suffix is the one
    in ARCHIVE_SUFFIXES.

    """
    lowered = name.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lowered.endswith(suffix) and len(lowered) > len(suffix):
            return suffix
    return None


class ArchiveBase(metaclass=ABCMeta):
    """Base class for archive reader implementations."""

    @abstractmethod
    def iter_regular_files(self) -> Iterable[tuple[str, int, object]]:
        """Yields tuples of (filepath, decompressed size, handle),
        regular files only.

        filepath will always be /-separated.
        handle can be passed to open_file.
        """
        pass

    def iter_directories(self) -> Iterable[str]:
        """Yields the /-separated paths of explicit directory entries."""
        return []

    @abstractmethod
    def open_file(self, handle: object) -> typing.IO[bytes]:
        """Open a member of the archive for reading."""
        pass

    def close(self):
        """Release the underlying archive, if needed."""
        pass


class ArchiveZipfile(ArchiveBase):
    """Archive reader using `zipfile`, see ArchiveBase."""

    def __init__(self, inner: zipfile.ZipFile):
        self.inner = inner

    def iter_regular_files(self) -> list[tuple[str, int, zipfile.ZipInfo]]:
        return [
            (x.filename, x.file_size, x)
            for x in self.inner.infolist()
            if not x.is_dir()
        ]

    def iter_directories(self) -> list[str]:
        return [x.filename for x in self.inner.infolist() if x.is_dir()]

    def open_file(self, handle: object) -> typing.IO[bytes]:
        assert isinstance(handle, zipfile.ZipInfo)
        return self.inner.open(handle, "r")

    def close(self):
        self.inner.close()


class ArchiveTarfile(ArchiveBase):
    """Archive reader using `tarfile`, see ArchiveBase."""

    def __init__(self, inner: tarfile.TarFile):
        self.inner = inner

    def iter_regular_files(self) -> list[tuple[str, int, tarfile.TarInfo]]:
        # Links, devices and fifos are never materialized.
        return [(member.path, member.size, member)
                for member in self.inner.getmembers() if member.isfile()]

    def iter_directories(self) -> list[str]:
        return [member.path for member in self.inner.getmembers()
                if member.isdir()]

    def open_file(self, handle: object) -> typing.IO[bytes]:
        assert isinstance(handle, tarfile.TarInfo)
        fobj = self.inner.extractfile(handle)
        if fobj is None:
            raise ValueError("not a regular file")
        return fobj

    def close(self):
        self.inner.close()


class ArchiveDirectory(ArchiveBase):
    """Present an already unpacked directory as an archive.

    Used for the formats that only patool knows how to unpack. Symbolic
    links are skipped, like link members of real archives.

    """

    def __init__(self, path: str):
        self.path = path

    def _walk(self):
        for dirpath, dirnames, filenames in os.walk(self.path):
            dirnames.sort()
            rel_dir = os.path.relpath(dirpath, self.path)
            yield rel_dir, dirnames, sorted(filenames)

    def iter_regular_files(self) -> list[tuple[str, int, str]]:
        files = []
        for rel_dir, _, filenames in self._walk():
            for filename in filenames:
                full_path = os.path.join(self.path, rel_dir, filename)
                if os.path.islink(full_path) or not os.path.isfile(full_path):
                    continue
                rel_path = os.path.normpath(os.path.join(rel_dir, filename))
                files.append((rel_path.replace(os.sep, "/"),
                              os.path.getsize(full_path), full_path))
        return files

    def iter_directories(self) -> list[str]:
        directories = []
        for rel_dir, dirnames, _ in self._walk():
            for dirname in dirnames:
                rel_path = os.path.normpath(os.path.join(rel_dir, dirname))
                directories.append(rel_path.replace(os.sep, "/"))
        return directories

    def open_file(self, handle: object) -> typing.IO[bytes]:
        assert isinstance(handle, str)
        return open(handle, "rb")


def open_archive(input: typing.IO[bytes]) -> ArchiveBase:
    """Open an archive for reading.

    input: the archive, opened for reading in binary mode.

    raise (ValueError): if input is neither a tar nor a zip archive.

    """
    # is_zipfile is a very lenient check that also accepts an
    # uncompressed tar containing a zip file, so test for tar first (it
    # only reads the very start of the file).
    if tarfile.is_tarfile(input):
        input.seek(0)
        return ArchiveTarfile(tarfile.open(fileobj=input))
    elif zipfile.is_zipfile(input):
        input.seek(0)
        return ArchiveZipfile(zipfile.ZipFile(input))
    else:
        raise ValueError("not a known archive format")


def is_supported_by_patool(path: str) -> bool:
    """Return whether patool recognizes and can test the file at path."""
    try:
        patoolib.test_archive(path, interactive=False)
        return True
    except PatoolError:
        return False


class ArchiveExtractor:
    """Unpack submissions and the archives nested inside them.

    Both a depth limit and a staging directory must be configured
    before calling extract(). The depth limit tells how many levels of
    archives found inside the extracted content are extracted in turn:
    with 0 only the outer archive is, and nested archives are left as
    plain files. An archive member named foo.zip is extracted into a
    sibling directory named foo.

    After each extract() call, failed_files lists the nested members
    that looked like archives but were not, and rejected_members lists
    the members skipped because their path would escape the output
    directory.

    """

    def __init__(self, depth_limit: int | None = None,
                 staging_dir: str | None = None,
                 max_extracted_size: int | None = None):
        """Init.

        depth_limit: see set_depth_limit; None means "not configured".
        staging_dir: see set_staging_dir; None means "not configured".
        max_extracted_size: maximum number of bytes a single extract()
            may write, or None for no limit.

        """
        self._depth_limit: int | None = None
        self._staging_dir: str | None = None
        if depth_limit is not None:
            self.set_depth_limit(depth_limit)
        if staging_dir is not None:
            self.set_staging_dir(staging_dir)
        self.max_extracted_size = max_extracted_size

        self.failed_files: list[str] = []
        self.rejected_members: list[str] = []
        self.empty_dirs: list[str] = []
        self._extracted_size = 0

    @property
    def depth_limit(self) -> int | None:
        return self._depth_limit

    def set_depth_limit(self, value: int):
        """Set how many levels of nested archives will be extracted.

        raise (ConfigError): if value is not a non-negative integer.

        """
        if not isinstance(value, int) or isinstance(value, bool) \
                or value < 0:
            raise ConfigError(
                "Extraction depth limit must be a non-negative integer, "
                "got %r." % (value,))
        self._depth_limit = value

    @property
    def staging_dir(self) -> str | None:
        return self._staging_dir

    def set_staging_dir(self, path: str):
        """Set the directory for transient nested-extraction files.

        raise (ConfigError): if path is not a non-empty string.

        """
        if not isinstance(path, str) or path == "":
            raise ConfigError("Staging directory must be a non-empty path.")
        self._staging_dir = path

    def extract(self, archive_path: str, output_dir: str):
        """Extract archive_path, and nested archives, into output_dir.

        output_dir is created if missing.

        archive_path: the archive to extract.
        output_dir: where to put its content.

        raise (ConfigError): if the extractor is not fully configured,
            or if output_dir exists and is not a directory.
        raise (FileNotFoundError): if archive_path is missing or empty.
        raise (ArchiveFormatError): if archive_path is not an archive.
        raise (ArchiveLimitError): if the size limit is exceeded.
        raise (OSError): for any other I/O failure.

        """
        if self._depth_limit is None:
            raise ConfigError("Extraction depth limit was never set.")
        if self._staging_dir is None:
            raise ConfigError("Staging directory was never set.")
        if not os.path.isfile(archive_path) \
                or os.path.getsize(archive_path) == 0:
            raise FileNotFoundError(
                "Cannot find archive or archive is empty: %s" % archive_path)
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ConfigError("Output folder is a file: %s" % output_dir)

        self.failed_files = []
        self.rejected_members = []
        self._extracted_size = 0
        os.makedirs(self._staging_dir, exist_ok=True)

        logger.info("Extracting %s into %s.", archive_path, output_dir)
        self._extract(archive_path, output_dir, 0)

    @contextlib.contextmanager
    def _open(self, path: str):
        """Open path with the best available reader.

        raise (ArchiveFormatError): if no reader understands path.

        """
        with open(path, "rb") as f:
            try:
                archive = open_archive(f)
            except ValueError:
                archive = None
            except _CORRUPTION_ERRORS as error:
                raise ArchiveFormatError(
                    "Corrupted archive %s: %s" % (path, error)) from error
            if archive is not None:
                try:
                    yield archive
                finally:
                    archive.close()
                return

        if not is_supported_by_patool(path):
            raise ArchiveFormatError("Not a supported archive: %s" % path)
        unpack_dir = tempfile.mkdtemp(dir=self._staging_dir)
        try:
            try:
                patoolib.extract_archive(path, outdir=unpack_dir,
                                         interactive=False)
            except PatoolError as error:
                raise ArchiveFormatError(
                    "Cannot unpack %s: %s" % (path, error)) from error
            yield ArchiveDirectory(unpack_dir)
        finally:
            rmtree(unpack_dir)

    def _extract(self, archive_path: str, output_dir: str, level: int):
        """Extract one archive at the given nesting level."""
        if os.path.getsize(archive_path) == 0:
            raise ArchiveFormatError("Empty archive: %s" % archive_path)

        with self._open(archive_path) as archive:
            os.makedirs(output_dir, exist_ok=True)

            try:
                for name in archive.iter_directories():
                    target = self._safe_target(output_dir, name)
                    if target is not None:
                        os.makedirs(target, exist_ok=True)

                for name, size, handle in archive.iter_regular_files():
                    target = self._safe_target(output_dir, name)
                    if target is None:
                        continue
                    suffix = archive_suffix(target)
                    if suffix is not None and level < self._depth_limit:
                        self._extract_nested(archive, name, size, handle,
                                             target, suffix, level)
                    else:
                        self._write_member(archive, size, handle, target)
            except _CORRUPTION_ERRORS as error:
                raise ArchiveFormatError(
                    "Corrupted archive %s: %s" % (archive_path, error)
                ) from error

    def _extract_nested(self, archive: ArchiveBase, name: str, size: int,
                        handle: object, target: str, suffix: str,
                        level: int):
        """Stage a nested archive and extract it next to where it was."""
        nested_dir = target[:-len(suffix)]
        fd, staged = tempfile.mkstemp(dir=self._staging_dir, suffix=suffix)
        os.close(fd)
        try:
            self._write_member(archive, size, handle, staged)
            existed = os.path.lexists(nested_dir)
            try:
                self._extract(staged, nested_dir, level + 1)
            except ArchiveFormatError:
                logger.warning("Nested member %s is not a valid archive, "
                               "keeping it as a plain file.", name)
                self.failed_files.append(name)
                # Drop whatever a damaged archive let through.
                if not existed and os.path.isdir(nested_dir):
                    rmtree(nested_dir)
                shutil.copyfile(staged, target)
        finally:
            os.remove(staged)

    def _safe_target(self, output_dir: str, name: str) -> str | None:
        """Return where member name goes, or None to skip it.

        Absolute paths and paths going up with ".." are refused.

        """
        parts = [part for part in name.replace("\\", "/").split("/")
                 if part not in ("", ".")]
        if name.startswith(("/", "\\")) or ".." in parts or not parts \
                or _WINDOWS_DRIVE.fullmatch(parts[0]):
            logger.warning("Refusing archive member with unsafe path %r.",
                           name)
            self.rejected_members.append(name)
            return None
        return os.path.join(output_dir, *parts)

    def _write_member(self, archive: ArchiveBase, size: int, handle: object,
                      target: str):
        """Copy a member to target, enforcing the size limit."""
        limit = self.max_extracted_size
        if limit is not None and self._extracted_size + size > limit:
            raise ArchiveLimitError(
                "Extraction would exceed %d bytes." % limit)

        os.makedirs(os.path.dirname(target), exist_ok=True)
        with archive.open_file(handle) as src, open(target, "wb") as dst:
            while True:
                buf = src.read(_COPY_BUFFER_SIZE)
                if not buf:
                    break
                # Declared sizes can lie.
                self._extracted_size += len(buf)
                if limit is not None and self._extracted_size > limit:
                    raise ArchiveLimitError(
                        "Extraction would exceed %d bytes." % limit)
                dst.write(buf)

    def pack(self, input_dir: str, output_archive: str):
        """Create output_archive with all the files in input_dir.

        The format is chosen from the suffix of output_archive: zip and
        tar variants are written directly, anything else is handed to
        patool. Empty directories cannot be represented and are
        skipped; after the call they are listed in empty_dirs.

        input_dir: directory with the files to archive.
        output_archive: the new archive's path.

        raise (FileNotFoundError): if input_dir is missing or has no
            files.
        raise (ConfigError): if output_archive cannot be created there.

        """
        files, self.empty_dirs = self._collect(input_dir)
        for empty_dir in self.empty_dirs:
            logger.info("Folder %s is empty, it will be ignored.", empty_dir)

        if os.path.isdir(output_archive):
            raise ConfigError(
                "Output archive is a directory: %s" % output_archive)
        parent = os.path.dirname(os.path.abspath(output_archive))
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as error:
            raise ConfigError("Cannot create the folder for %s: %s"
                              % (output_archive, error)) from error

        logger.info("Packing %s into %s.", input_dir, output_archive)
        suffix = archive_suffix(output_archive)
        if suffix == ".zip":
            with zipfile.ZipFile(output_archive, "w",
                                 zipfile.ZIP_DEFLATED) as zf:
                for rel_path in files:
                    zf.write(os.path.join(input_dir, rel_path),
                             arcname=rel_path)
        elif suffix is not None:
            with tarfile.open(output_archive,
                              _TAR_WRITE_MODES[suffix]) as tf:
                for rel_path in files:
                    tf.add(os.path.join(input_dir, rel_path),
                           arcname=rel_path, recursive=False)
        else:
            self._pack_with_patool(input_dir, files, output_archive)

    @staticmethod
    def _pack_with_patool(input_dir: str, files: list[str],
                          output_archive: str):
        # The working directory of this process is left alone, other
        # pipelines may be resolving relative paths meanwhile.
        output_archive = os.path.abspath(output_archive)
        try:
            subprocess.run(
                [sys.executable, "-c", _PATOOL_CREATE, output_archive,
                 *files],
                cwd=input_dir, check=True, capture_output=True)
        except subprocess.CalledProcessError as error:
            raise ConfigError(
                "Cannot create %s: %s" % (
                    output_archive,
                    error.stderr.decode("utf-8", errors="replace").strip())
            ) from error

    @staticmethod
    def _collect(input_dir: str) -> tuple[list[str], list[str]]:
        """Return the files (relative, /-separated) and empty folders
        (absolute) found under input_dir, in a stable order.

        raise (FileNotFoundError): if there is no file at all.

        """
        if not os.path.isdir(input_dir):
            raise FileNotFoundError("Input folder not found: %s" % input_dir)
        files = []
        empty_dirs = []
        for dirpath, dirnames, filenames in os.walk(input_dir):
            dirnames.sort()
            if not dirnames and not filenames and dirpath != input_dir:
                empty_dirs.append(dirpath)
            for filename in sorted(filenames):
                rel_path = os.path.relpath(
                    os.path.join(dirpath, filename), input_dir)
                files.append(rel_path.replace(os.sep, "/"))
        if not files:
            raise FileNotFoundError("Input folder is empty: %s" % input_dir)
        return files, empty_dirs
