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

"""Content digests for bytes, files and whole directory trees.

GRIT uses SHA-1 everywhere. The choice is part of the contract with
whoever caches or deduplicates submissions by fingerprint, so changing
it invalidates every fingerprint computed so far.

"""

import hashlib
import io
import os
import stat


__all__ = [
    "Digester", "bytes_digest", "path_digest", "tree_digest",
]


class Digester:
    """Simple wrapper of hashlib using our preferred hasher."""

    def __init__(self):
        self._hasher = hashlib.sha1()

    def update(self, b: bytes):
        """Add the bytes b to the hasher."""
        self._hasher.update(b)

    def digest(self) -> str:
        """Return the digest as an hex string."""
        return self._hasher.hexdigest()


def bytes_digest(b: bytes) -> str:
    """Return the digest for the passed bytes.

    b: some bytes.

    return: digest of the bytes.

    """
    d = Digester()
    d.update(b)
    return d.digest()


def path_digest(path: str) -> str:
    """Return the digest of the content of a file, given by its path.

    path: path of the file we are interested in.

    return: digest of the content of the file in path.

    raise (OSError): if the file cannot be read.

    """
    d = Digester()
    with open(path, "rb") as fin:
        buf = fin.read(io.DEFAULT_BUFFER_SIZE)
        while buf != b"":
            d.update(buf)
            buf = fin.read(io.DEFAULT_BUFFER_SIZE)
    return d.digest()


def _entry_digest(path: str, mode: int) -> str:
    """Digest of a non-directory entry of a tree."""
    if stat.S_ISLNK(mode):
        # Links are not followed, the target string is the content.
        return bytes_digest(os.fsencode(os.readlink(path)))
    if not stat.S_ISREG(mode):
        # Opening a fifo would block forever.
        raise OSError("Not a regular file: %s" % path)
    return path_digest(path)


def tree_digest(path: str) -> str:
    """Return the fingerprint of the directory tree rooted at path.

    Every entry of a directory gets a digest: files the digest of their
    content, subdirectories their own tree digest. The hex digests of a
    directory's entries, taken in name order, are concatenated and
    digested again to give the directory's digest.

    The traversal is post-order on an explicit stack, so arbitrarily
    deep trees do not hit the recursion limit.

    path: the root directory.

    return: the digest of the tree.

    raise (NotADirectoryError): if path is not a directory.
    raise (OSError): if any entry cannot be listed or read; no partial
        result is returned.

    """
    if not os.path.isdir(path):
        raise NotADirectoryError("Not a directory: %s" % path)

    # Each frame is [directory path, remaining child names, digests of
    # the children processed so far].
    stack = [[path, sorted(os.listdir(path), reverse=True), []]]
    while True:
        dir_path, pending, parts = stack[-1]
        if not pending:
            stack.pop()
            digest = bytes_digest("".join(parts).encode("ascii"))
            if not stack:
                return digest
            stack[-1][2].append(digest)
            continue

        child = os.path.join(dir_path, pending.pop())
        mode = os.lstat(child).st_mode
        if stat.S_ISDIR(mode):
            stack.append([child, sorted(os.listdir(child), reverse=True), []])
        else:
            parts.append(_entry_digest(child, mode))
