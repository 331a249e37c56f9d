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
import os
import stat

import chardet
import gevent


logger = logging.getLogger(__name__)


# os.fwalk() protects against symlinks swapped in while we delete, which
# matters since submission trees are attacker-controlled.
def rmtree(path: str):
    """Recursively delete a directory tree.

    Remove the files first, then the subdirectories bottom-up, then
    path itself. Symbolic links are removed, never followed. Yield to
    other greenlets after each removal.

    path: the path to a directory.

    raise (OSError): in case of errors in the elementary operations.

    """
    # If path is a symlink, fwalk() yields no entries.
    for _, subdirnames, filenames, dirfd in os.fwalk(path, topdown=False):
        for filename in filenames:
            os.remove(filename, dir_fd=dirfd)
            gevent.sleep(0)
        for subdirname in subdirnames:
            if stat.S_ISLNK(os.lstat(subdirname, dir_fd=dirfd).st_mode):
                os.remove(subdirname, dir_fd=dirfd)
            else:
                os.rmdir(subdirname, dir_fd=dirfd)
            gevent.sleep(0)

    # Remove the directory itself. An exception is raised if path is a symlink.
    os.rmdir(path)


def utf8_decoder(value: str | bytes) -> str:
    """Decode given binary to text (if it isn't already) using UTF8, and
    falling back to other encodings when possible (using chardet to guess).

    value: value to decode.

    return: decoded value.

    raise (TypeError): if value isn't a string or cannot be decoded.

    """
    if isinstance(value, str):
        return value
    elif isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            encoding = chardet.detect(value).get("encoding")
            if encoding is not None:
                try:
                    return value.decode(encoding)
                except (LookupError, UnicodeDecodeError):
                    pass

    raise TypeError("Not a string.")
