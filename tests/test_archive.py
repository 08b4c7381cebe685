import io
import os
import shutil
import stat
import tempfile
import unittest

import cpiolib.conf
from cpiolib import cpioerr
from cpiolib.archive import extract_archive
from cpiolib.archive import extract_entry
from cpiolib.archive import list_archive
from cpiolib.archive import load_path
from cpiolib.archive import write_archive
from cpiolib.newc import ModeFileType
from cpiolib.reader import Reader
from cpiolib.reader import iter_entries
from cpiolib.writer import Builder
from cpiolib.writer import trailer

from .common import HELLO_WORLD
from .common import HELLO_WORLD_2
from .common import CpioTestCase
from .common import hello_world_archive
from .common import write_entry


class TestWriteArchive(CpioTestCase):
    def test_write(self):
        entries = [
            (Builder("./hello_world", uid=1000, gid=1000, mode=0o100644), io.BytesIO(HELLO_WORLD)),
            (Builder("./hello_world2", uid=1000, gid=1000, mode=0o100644), io.BytesIO(HELLO_WORLD_2)),
        ]
        output = write_archive(entries, io.BytesIO())
        output.seek(0)

        result = []
        for reader in iter_entries(output):
            result.append((reader.entry.name, reader.entry.ino, reader.read()))
        self.assertEqual(result, [
            ("./hello_world", 0, HELLO_WORLD),
            ("./hello_world2", 1, HELLO_WORLD_2),
        ])

    def test_same_bytes_as_manual_writes(self):
        expected = hello_world_archive().getvalue()
        entries = [
            # ino is assigned from the position in the archive
            (Builder("./hello_world", uid=1000, gid=1000, mode=0o100644), io.BytesIO(HELLO_WORLD)),
            (Builder("./hello_world2", uid=1000, gid=1000, mode=0o100644), io.BytesIO(HELLO_WORLD_2)),
        ]
        output = write_archive(entries, io.BytesIO())
        data = output.getvalue()
        self.assertEqual(len(data), len(expected))
        self.assertEqual(data[6:14], b"00000000")
        self.assertEqual(data[14:136], expected[14:136])
        self.assertEqual(data[142:150], b"00000001")
        self.assertEqual(data[150:], expected[150:])

    def test_empty(self):
        output = write_archive([], io.BytesIO())
        self.assertEqual(output.getvalue(), trailer(io.BytesIO()).getvalue())

    def test_source_not_at_start(self):
        source = io.BytesIO(HELLO_WORLD)
        source.seek(5)
        output = write_archive([(Builder("a"), source)], io.BytesIO())
        output.seek(0)
        self.assertEqual(Reader(output).read(), HELLO_WORLD)

    def test_small_buffer(self):
        cpiolib.conf.config["buffer_size"] = 1
        output = write_archive([(Builder("a"), io.BytesIO(HELLO_WORLD))], io.BytesIO())
        output.seek(0)
        self.assertEqual(Reader(output).read(), HELLO_WORLD)

    def test_with_checksum(self):
        output = write_archive([(Builder("a"), io.BytesIO(HELLO_WORLD))], io.BytesIO(), with_checksum=True)
        output.seek(0)
        reader = Reader(output)
        self.assertEqual(reader.entry.checksum, sum(HELLO_WORLD))
        stream = reader.finish()
        # the trailer never carries a checksum
        self.assertIsNone(Reader(stream).entry.checksum)

    def test_lazy_entries(self):
        consumed = []

        def entries():
            for name, data in (("a", b"1"), ("b", b"22")):
                consumed.append(name)
                yield Builder(name), io.BytesIO(data)

        output = write_archive(entries(), io.BytesIO())
        self.assertEqual(consumed, ["a", "b"])
        output.seek(0)
        self.assertEqual([i.name for i in list_archive(output)], ["a", "b"])

    def test_error_stops_before_trailer(self):
        def entries():
            yield Builder("a"), io.BytesIO(b"1")
            raise RuntimeError("source failed")

        output = io.BytesIO()
        self.assertRaises(RuntimeError, write_archive, entries(), output)
        self.assertNotIn(b"TRAILER!!!", output.getvalue())


class TestListArchive(CpioTestCase):
    def test_list(self):
        entries = list_archive(hello_world_archive())
        self.assertEqual([i.name for i in entries], ["./hello_world", "./hello_world2"])
        self.assertEqual([i.file_size for i in entries], [12, 14])
        self.assertEqual(str(entries[0]), "./hello_world (12 bytes)")

    def test_invalid(self):
        self.assertRaises(cpioerr.InvalidFormat, list_archive, io.BytesIO(b"x" * 200))


class TestExtractEntry(CpioTestCase):
    def test_found(self):
        sink = io.BytesIO()
        self.assertTrue(extract_entry(hello_world_archive(), "./hello_world2", sink))
        self.assertEqual(sink.getvalue(), HELLO_WORLD_2)

    def test_not_found(self):
        sink = io.BytesIO()
        self.assertFalse(extract_entry(hello_world_archive(), "./missing", sink))
        self.assertEqual(sink.getvalue(), b"")

    def test_first_match_wins(self):
        stream = io.BytesIO()
        stream = write_entry(stream, Builder("a"), b"first")
        stream = write_entry(stream, Builder("a"), b"second")
        stream = trailer(stream)
        stream.seek(0)
        sink = io.BytesIO()
        self.assertTrue(extract_entry(stream, "a", sink))
        self.assertEqual(sink.getvalue(), b"first")


class TmpDirTestCase(CpioTestCase):
    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp(prefix="cpiolib_test_")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)
        super().tearDown()


class TestLoadPath(TmpDirTestCase):
    def test_regular_file(self):
        path = os.path.join(self.tmpdir, "file")
        with open(path, "wb") as f:
            f.write(HELLO_WORLD)
        os.chmod(path, 0o640)

        builder, source = load_path(path, name="./file")
        with source:
            self.assertEqual(builder.name, "./file")
            self.assertEqual(builder.mode, 0o100640)
            self.assertEqual(builder.file_type, ModeFileType.REGULAR)
            self.assertEqual(builder.uid, os.getuid())
            self.assertEqual(source.read(), HELLO_WORLD)

    def test_default_name(self):
        path = os.path.join(self.tmpdir, "file")
        open(path, "wb").close()
        builder, source = load_path(path)
        source.close()
        self.assertEqual(builder.name, path)

    def test_directory(self):
        builder, source = load_path(self.tmpdir, name="dir")
        self.assertEqual(builder.file_type, ModeFileType.DIRECTORY)
        self.assertEqual(source.read(), b"")

    def test_symlink(self):
        path = os.path.join(self.tmpdir, "link")
        os.symlink("target/file", path)
        builder, source = load_path(path, name="link")
        self.assertEqual(builder.file_type, ModeFileType.SYMLINK)
        self.assertEqual(source.read(), b"target/file")


class TestExtractArchive(TmpDirTestCase):
    def _archive(self):
        stream = io.BytesIO()
        stream = write_entry(stream, Builder(".", mode=0o040755), b"")
        stream = write_entry(stream, Builder("dir", mode=0o040750), b"")
        stream = write_entry(stream, Builder("dir/file", mode=0o100640), HELLO_WORLD)
        stream = write_entry(stream, Builder("nested/file2", mode=0o100644), HELLO_WORLD_2)
        stream = write_entry(stream, Builder("link", mode=0o120777), b"dir/file")
        stream = write_entry(stream, Builder("fifo", mode=0o010644), b"")
        stream = trailer(stream)
        stream.seek(0)
        return stream

    def test_extract(self):
        result = extract_archive(self._archive(), self.tmpdir)
        join = os.path.join
        self.assertEqual(result, [
            join(self.tmpdir, "dir"),
            join(self.tmpdir, "dir", "file"),
            join(self.tmpdir, "nested", "file2"),
            join(self.tmpdir, "link"),
        ])

        self.assertTrue(os.path.isdir(join(self.tmpdir, "dir")))
        with open(join(self.tmpdir, "dir", "file"), "rb") as f:
            self.assertEqual(f.read(), HELLO_WORLD)
        self.assertEqual(stat.S_IMODE(os.stat(join(self.tmpdir, "dir", "file")).st_mode), 0o640)
        with open(join(self.tmpdir, "nested", "file2"), "rb") as f:
            self.assertEqual(f.read(), HELLO_WORLD_2)
        self.assertEqual(os.readlink(join(self.tmpdir, "link")), "dir/file")
        self.assertFalse(os.path.lexists(join(self.tmpdir, "fifo")))

    def test_absolute_path(self):
        stream = write_entry(io.BytesIO(), Builder("/etc/passwd", mode=0o100644), b"x")
        stream = trailer(stream)
        stream.seek(0)
        self.assertRaises(cpioerr.CpioError, extract_archive, stream, self.tmpdir)

    def test_path_outside_destination(self):
        stream = write_entry(io.BytesIO(), Builder("a/../../evil", mode=0o100644), b"x")
        stream = trailer(stream)
        stream.seek(0)
        self.assertRaises(cpioerr.CpioError, extract_archive, stream, self.tmpdir)
        self.assertFalse(os.path.exists(os.path.join(os.path.dirname(self.tmpdir), "evil")))

    def _entries(self, *entries):
        stream = io.BytesIO()
        for name, mode, data in entries:
            stream = write_entry(stream, Builder(name, mode=mode), data)
        stream = trailer(stream)
        stream.seek(0)
        return stream

    def _dirs(self):
        dest = os.path.join(self.tmpdir, "dest")
        outside = os.path.join(self.tmpdir, "outside")
        os.makedirs(dest)
        os.makedirs(outside)
        return dest, outside

    def test_path_through_symlink_outside_destination(self):
        dest, outside = self._dirs()
        stream = self._entries(
            ("link", 0o120777, outside.encode("utf-8")),
            ("link/evil", 0o100644, b"x"),
        )
        self.assertRaises(cpioerr.CpioError, extract_archive, stream, dest)
        self.assertEqual(os.listdir(outside), [])

    def test_path_through_relative_symlink_outside_destination(self):
        dest, outside = self._dirs()
        stream = self._entries(
            ("link", 0o120777, b"../outside"),
            ("link/sub/evil", 0o100644, b"x"),
        )
        self.assertRaises(cpioerr.CpioError, extract_archive, stream, dest)
        self.assertEqual(os.listdir(outside), [])

    def test_path_through_symlink_inside_destination(self):
        dest, _ = self._dirs()
        stream = self._entries(
            ("dir", 0o040755, b""),
            ("link", 0o120777, b"dir"),
            ("link/file", 0o100644, HELLO_WORLD),
        )
        extract_archive(stream, dest)
        with open(os.path.join(dest, "dir", "file"), "rb") as f:
            self.assertEqual(f.read(), HELLO_WORLD)

    def test_file_replaces_symlink(self):
        dest, outside = self._dirs()
        target = os.path.join(outside, "target")
        with open(target, "wb") as f:
            f.write(b"untouched")
        stream = self._entries(
            ("f", 0o120777, target.encode("utf-8")),
            ("f", 0o100644, HELLO_WORLD),
        )
        extract_archive(stream, dest)

        path = os.path.join(dest, "f")
        self.assertFalse(os.path.islink(path))
        with open(path, "rb") as f:
            self.assertEqual(f.read(), HELLO_WORLD)
        with open(target, "rb") as f:
            self.assertEqual(f.read(), b"untouched")

    def test_symlink_replaces_file(self):
        dest, _ = self._dirs()
        with open(os.path.join(dest, "f"), "wb") as f:
            f.write(b"old")
        extract_archive(self._entries(("f", 0o120777, b"target")), dest)
        self.assertEqual(os.readlink(os.path.join(dest, "f")), "target")

    def test_extract_twice(self):
        extract_archive(self._archive(), self.tmpdir)
        extract_archive(self._archive(), self.tmpdir)
        with open(os.path.join(self.tmpdir, "dir", "file"), "rb") as f:
            self.assertEqual(f.read(), HELLO_WORLD)
        self.assertEqual(os.readlink(os.path.join(self.tmpdir, "link")), "dir/file")

    def test_file_over_directory(self):
        os.makedirs(os.path.join(self.tmpdir, "dir"))
        stream = self._entries(("dir", 0o100644, b"x"))
        self.assertRaises(cpioerr.CpioError, extract_archive, stream, self.tmpdir)
        self.assertTrue(os.path.isdir(os.path.join(self.tmpdir, "dir")))

    def test_relative_destination(self):
        old_cwd = os.getcwd()
        os.chdir(self.tmpdir)
        self.addCleanup(os.chdir, old_cwd)
        result = extract_archive(self._entries(("file", 0o100644, b"x")), ".")
        self.assertEqual(result, [os.path.join(os.path.abspath("."), "file")])


class TestRoundtrip(TmpDirTestCase):
    def test_create_and_extract(self):
        src = os.path.join(self.tmpdir, "src")
        dest = os.path.join(self.tmpdir, "dest")
        os.makedirs(os.path.join(src, "sub"))
        os.makedirs(dest)
        with open(os.path.join(src, "sub", "data"), "wb") as f:
            f.write(bytes(range(256)) * 1000)

        entries = []
        for name in ("sub", "sub/data"):
            entries.append(load_path(os.path.join(src, name), name=name))
        try:
            archive = write_archive(entries, io.BytesIO(), with_checksum=True)
        finally:
            for _, source in entries:
                source.close()

        archive.seek(0)
        extract_archive(archive, dest)
        with open(os.path.join(dest, "sub", "data"), "rb") as f:
            self.assertEqual(f.read(), bytes(range(256)) * 1000)


if __name__ == "__main__":
    unittest.main()
