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

"""Tests for the archive module."""

import io
import os
import random
import subprocess
import sys
import tarfile
import unittest
import zipfile
from unittest.mock import patch

from gritcommon.archive import ArchiveExtractor, ArchiveFormatError, \
    ArchiveLimitError, archive_suffix
from gritcommon.conf_parser import ConfigError
from grittestsuite.unit_tests.filesystemmixin import FileSystemMixin, \
    tar_bytes, zip_bytes


def nested_zip(levels):
    """Return an archive with levels-1 nested archives inside.

    The innermost archive, level<levels>.zip, holds deep.txt; every
    level<n>.zip holds level<n+1>.zip; the returned archive holds
    top.txt and level1.zip.

    """
    content = zip_bytes({"deep.txt": b"deep"})
    for n in range(levels - 1, 0, -1):
        content = zip_bytes({"level%d.zip" % (n + 1): content})
    return zip_bytes({"top.txt": b"top", "level1.zip": content})


def corrupt_zip(name, content):
    """Return a deflated zip holding name, with its data mangled."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, content)
        size = zf.getinfo(name).compress_size
    data = bytearray(buf.getvalue())
    # The data follows the 30 bytes local header and the name.
    start = 30 + len(name.encode())
    for i in range(start + size // 4, start + size // 2):
        data[i] ^= 0xFF
    return bytes(data)


def truncated_tgz():
    """Return a gzipped tar cut in the middle of its only member."""
    content = random.Random(0).randbytes(50000)
    data = tar_bytes({"a.txt": content})
    return data[:len(data) * 3 // 5]


COMPRESSIBLE = b"".join(b"line %d\n" % i for i in range(2000))


class TestArchiveSuffix(unittest.TestCase):

    def test_suffixes(self):
        self.assertEqual(archive_suffix("a.zip"), ".zip")
        self.assertEqual(archive_suffix("a.TAR.GZ"), ".tar.gz")
        self.assertEqual(archive_suffix("dir/a.tgz"), ".tgz")
        self.assertIsNone(archive_suffix("a.gz"))
        self.assertIsNone(archive_suffix("a.txt"))
        self.assertIsNone(archive_suffix(".zip"))


class TestConfiguration(FileSystemMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.archive = self.write_file("a.zip", zip_bytes({"a.txt": b"a"}))
        self.out = self.get_path("out")

    def test_not_configured(self):
        with self.assertRaises(ConfigError):
            ArchiveExtractor().extract(self.archive, self.out)

    def test_missing_staging_dir(self):
        with self.assertRaises(ConfigError):
            ArchiveExtractor(depth_limit=2).extract(self.archive, self.out)

    def test_missing_depth_limit(self):
        extractor = ArchiveExtractor(staging_dir=self.get_path("staging"))
        with self.assertRaises(ConfigError):
            extractor.extract(self.archive, self.out)

    def test_invalid_depth_limit(self):
        extractor = ArchiveExtractor()
        for value in [-1, "2", 1.5, True, None]:
            with self.assertRaises(ConfigError):
                extractor.set_depth_limit(value)
        self.assertIsNone(extractor.depth_limit)
        extractor.set_depth_limit(0)
        self.assertEqual(extractor.depth_limit, 0)

    def test_invalid_staging_dir(self):
        extractor = ArchiveExtractor()
        for value in ["", None, 3]:
            with self.assertRaises(ConfigError):
                extractor.set_staging_dir(value)
        self.assertIsNone(extractor.staging_dir)


class TestExtract(FileSystemMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.staging = self.get_path("staging")
        self.out = self.get_path("out")
        self.extractor = ArchiveExtractor(depth_limit=2,
                                          staging_dir=self.staging)

    def assertStagingEmpty(self):
        self.assertEqual(os.listdir(self.staging), [])

    def test_zip(self):
        archive = self.write_file("s.zip", zip_bytes({
            "Main.java": b"class Main {}", "pkg/Util.java": b"class Util {}",
        }))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"),
                         ["Main.java", "pkg", "pkg/Util.java"])
        with open(os.path.join(self.out, "pkg", "Util.java"), "rb") as f:
            self.assertEqual(f.read(), b"class Util {}")
        self.assertStagingEmpty()

    def test_tar_gz(self):
        archive = self.write_file("s.tar.gz", tar_bytes({"a/b.c": b"int x;"}))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["a", "a/b.c"])

    def test_existing_output_dir(self):
        self.write_file("out/old.txt", b"old")
        archive = self.write_file("s.zip", zip_bytes({"new.txt": b"new"}))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["new.txt", "old.txt"])

    def test_nested_within_limit(self):
        archive = self.write_file("s.zip", nested_zip(5))
        self.extractor.extract(archive, self.out)
        # level1 and level2 are extracted, level3.zip is the third level
        # of nesting and is left alone.
        self.assertEqual(self.list_tree("out"), [
            "level1", "level1/level2", "level1/level2/level3.zip",
            "top.txt",
        ])
        self.assertTrue(zipfile.is_zipfile(
            os.path.join(self.out, "level1", "level2", "level3.zip")))
        self.assertEqual(self.extractor.failed_files, [])
        self.assertStagingEmpty()

    def test_nested_depth_zero(self):
        self.extractor.set_depth_limit(0)
        archive = self.write_file("s.zip", nested_zip(3))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["level1.zip", "top.txt"])

    def test_nested_tar_in_zip(self):
        archive = self.write_file("s.zip", zip_bytes({
            "lib.tar": tar_bytes({"lib/x.h": b"#pragma once\n"}, mode="w"),
        }))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"),
                         ["lib", "lib/lib", "lib/lib/x.h"])

    def test_nested_not_an_archive(self):
        archive = self.write_file("s.zip", zip_bytes({
            "broken.zip": b"this is not a zip file",
            "ok.txt": b"ok",
        }))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["broken.zip", "ok.txt"])
        with open(os.path.join(self.out, "broken.zip"), "rb") as f:
            self.assertEqual(f.read(), b"this is not a zip file")
        self.assertEqual(self.extractor.failed_files, ["broken.zip"])
        self.assertStagingEmpty()

    def test_corrupt_zip(self):
        path = self.write_file("s.zip", corrupt_zip("a.txt", COMPRESSIBLE))
        with self.assertRaises(ArchiveFormatError):
            self.extractor.extract(path, self.out)

    def test_truncated_tgz(self):
        path = self.write_file("s.tgz", truncated_tgz())
        with self.assertRaises(ArchiveFormatError):
            self.extractor.extract(path, self.out)

    def test_nested_corrupt_zip(self):
        inner = corrupt_zip("a.txt", COMPRESSIBLE)
        archive = self.write_file("s.zip", zip_bytes({
            "inner.zip": inner, "ok.txt": b"ok",
        }))
        self.extractor.extract(archive, self.out)
        # Nothing of the damaged archive is left besides itself.
        self.assertEqual(self.list_tree("out"), ["inner.zip", "ok.txt"])
        with open(os.path.join(self.out, "inner.zip"), "rb") as f:
            self.assertEqual(f.read(), inner)
        self.assertEqual(self.extractor.failed_files, ["inner.zip"])
        self.assertStagingEmpty()

    def test_nested_truncated_tgz(self):
        archive = self.write_file("s.zip", zip_bytes({
            "inner.tgz": truncated_tgz(), "ok.txt": b"ok",
        }))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["inner.tgz", "ok.txt"])
        self.assertEqual(self.extractor.failed_files, ["inner.tgz"])
        self.assertStagingEmpty()

    def test_failed_files_reset(self):
        archive = self.write_file("s.zip", zip_bytes({"broken.zip": b"x"}))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.extractor.failed_files, ["broken.zip"])
        archive = self.write_file("t.zip", zip_bytes({"a.txt": b"a"}))
        self.extractor.extract(archive, self.get_path("out2"))
        self.assertEqual(self.extractor.failed_files, [])

    def test_unsafe_members(self):
        archive = self.write_file("s.zip", zip_bytes({
            "../evil.txt": b"evil",
            "/abs.txt": b"abs",
            "a/../../evil2.txt": b"evil",
            "good.txt": b"good",
        }))
        self.extractor.extract(archive, self.out)
        self.assertEqual(self.list_tree("out"), ["good.txt"])
        self.assertFalse(os.path.exists(self.get_path("evil.txt")))
        self.assertFalse(os.path.exists(self.get_path("evil2.txt")))
        self.assertEqual(self.extractor.rejected_members,
                         ["../evil.txt", "/abs.txt", "a/../../evil2.txt"])

    def test_size_limit(self):
        self.extractor.max_extracted_size = 10
        archive = self.write_file("s.zip", zip_bytes({"big.txt": b"x" * 100}))
        with self.assertRaises(ArchiveLimitError):
            self.extractor.extract(archive, self.out)

    def test_other_formats_through_patool(self):
        path = self.write_file("s.7z", b"7z, supposedly")

        def fake_extract(archive, outdir, interactive):
            os.makedirs(os.path.join(outdir, "a"))
            with open(os.path.join(outdir, "a", "b.txt"), "wb") as f:
                f.write(b"b")
            os.symlink("/etc/passwd", os.path.join(outdir, "link"))

        with patch("gritcommon.archive.is_supported_by_patool",
                   return_value=True), \
                patch("gritcommon.archive.patoolib.extract_archive",
                      side_effect=fake_extract):
            self.extractor.extract(path, self.out)
        self.assertEqual(self.list_tree("out"), ["a", "a/b.txt"])
        self.assertStagingEmpty()

    def test_not_an_archive(self):
        path = self.write_file("s.txt", b"just some text\n")
        with self.assertRaises(ArchiveFormatError):
            self.extractor.extract(path, self.out)

    def test_missing_archive(self):
        with self.assertRaises(FileNotFoundError):
            self.extractor.extract(self.get_path("missing.zip"), self.out)

    def test_empty_archive_file(self):
        path = self.write_file("empty.zip", b"")
        with self.assertRaises(FileNotFoundError):
            self.extractor.extract(path, self.out)

    def test_output_is_a_file(self):
        archive = self.write_file("s.zip", zip_bytes({"a.txt": b"a"}))
        self.write_file("out", b"")
        with self.assertRaises(ConfigError):
            self.extractor.extract(archive, self.out)


class TestPack(FileSystemMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.extractor = ArchiveExtractor()
        self.input = self.write_tree("in", {"b.txt": "b", "a/c.txt": "c"})
        self.empty = self.makedirs("in/empty")

    def test_zip(self):
        output = self.get_path("new/dir/out.zip")
        self.extractor.pack(self.input, output)
        with zipfile.ZipFile(output) as zf:
            self.assertEqual(sorted(zf.namelist()), ["a/c.txt", "b.txt"])
            self.assertEqual(zf.read("a/c.txt"), b"c")
        self.assertEqual(self.extractor.empty_dirs, [self.empty])

    def test_tar_gz(self):
        output = self.get_path("out.tar.gz")
        self.extractor.pack(self.input, output)
        with tarfile.open(output) as tf:
            self.assertEqual(sorted(tf.getnames()), ["a/c.txt", "b.txt"])

    def test_extract_what_was_packed(self):
        output = self.get_path("out.zip")
        self.extractor.pack(self.input, output)
        self.extractor.set_depth_limit(0)
        self.extractor.set_staging_dir(self.get_path("staging"))
        self.extractor.extract(output, self.get_path("out"))
        self.assertEqual(self.list_tree("out"), ["a", "a/c.txt", "b.txt"])

    def test_other_formats_through_patool(self):
        output = self.get_path("out.7z")
        cwd = os.getcwd()
        with patch("gritcommon.archive.subprocess.run") as run:
            self.extractor.pack(self.input, output)
        run.assert_called_once()
        args, kwargs = run.call_args
        self.assertEqual(args[0][0], sys.executable)
        self.assertEqual(args[0][3:], [output, "a/c.txt", "b.txt"])
        self.assertEqual(kwargs["cwd"], self.input)
        self.assertTrue(kwargs["check"])
        # Packing never moves the whole process somewhere else.
        self.assertEqual(os.getcwd(), cwd)

    def test_patool_failure(self):
        error = subprocess.CalledProcessError(
            2, "python", stderr=b"patool error: no 7z program\n")
        with patch("gritcommon.archive.subprocess.run", side_effect=error):
            with self.assertRaises(ConfigError) as context:
                self.extractor.pack(self.input, self.get_path("out.7z"))
        self.assertIn("no 7z program", str(context.exception))

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            self.extractor.pack(self.get_path("missing"),
                                self.get_path("out.zip"))

    def test_no_files(self):
        self.makedirs("only_dirs/sub")
        with self.assertRaises(FileNotFoundError):
            self.extractor.pack(self.get_path("only_dirs"),
                                self.get_path("out.zip"))

    def test_output_is_a_directory(self):
        output = self.makedirs("out.zip")
        with self.assertRaises(ConfigError):
            self.extractor.pack(self.input, output)

    def test_output_parent_is_a_file(self):
        self.write_file("file", b"")
        with self.assertRaises(ConfigError):
            self.extractor.pack(self.input, self.get_path("file/out.zip"))


if __name__ == "__main__":
    unittest.main()
