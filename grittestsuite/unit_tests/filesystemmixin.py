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

"""A unittest.TestCase mixin for tests interacting with the filesystem.

"""

import io
import os
import shutil
import tarfile
import tempfile
import zipfile


def zip_bytes(members):
    """Return the content of a zip archive.

    members ({str: bytes}): content of each member, by name; names
        are stored as given.

    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buf.getvalue()


def tar_bytes(members, mode="w:gz"):
    """Return the content of a tar archive, see zip_bytes."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return buf.getvalue()


class FileSystemMixin:
    """Mixin for tests with filesystem access."""

    def setUp(self):
        super().setUp()
        self.base_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.base_dir)
        super().tearDown()

    def get_path(self, inner_path):
        "Return the full path for a given inner path within the temp dir."
        return os.path.join(self.base_dir, inner_path)

    def makedirs(self, inner_path):
        """Create (possibly many) directories up to inner_path.

        inner_path (str): path to create.

        return (str): full path of the possibly new directory.

        """
        path = self.get_path(inner_path)
        os.makedirs(path, exist_ok=True)
        return path

    def write_file(self, inner_path, content):
        """Write content and return the full path.

        Missing parent directories are created.

        inner_path (str): path inside the temp dir to write to.
        content (bytes|str): content to write; str is encoded as UTF-8.

        return (str): full path of the file written.

        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        path = self.get_path(inner_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        return path

    def write_tree(self, inner_path, files):
        """Write several files under inner_path.

        files ({str: bytes|str}): content by /-separated relative path.

        return (str): full path of inner_path.

        """
        root = self.makedirs(inner_path)
        for rel_path, content in files.items():
            self.write_file(os.path.join(inner_path, *rel_path.split("/")),
                            content)
        return root

    def list_tree(self, inner_path):
        """Return the /-separated relative paths of all the files and
        directories under inner_path, sorted.

        """
        root = self.get_path(inner_path)
        entries = []
        for dirpath, dirnames, filenames in os.walk(root):
            for name in dirnames + filenames:
                rel_path = os.path.relpath(os.path.join(dirpath, name), root)
                entries.append(rel_path.replace(os.sep, "/"))
        return sorted(entries)
