import io
import unittest

import cpiolib.conf
from cpiolib.writer import Builder
from cpiolib.writer import trailer


HELLO_WORLD = b"Hello, World"
HELLO_WORLD_2 = b"Hello, World 2"


def make_header(name, namesize=None, filesize=0, magic=b"070701", check=0, ino=0, mode=0o100644, nlink=1):
    """
    Build a raw header including the name bytes and padding, bypassing the encoder.
    ``name`` is taken verbatim and must contain the NUL terminator if wanted.
    """
    if namesize is None:
        namesize = len(name)
    fields = [ino, mode, 0, 0, nlink, 0, filesize, 0, 0, 0, 0, namesize, check]
    header = magic + b"".join(b"%08x" % i for i in fields) + name
    header += b"\0" * ((4 - len(header) % 4) % 4)
    return header


def write_entry(stream, builder, data, file_checksum=None):
    if file_checksum is None:
        writer = builder.write(stream, len(data))
    else:
        writer = builder.write_with_checksum(stream, len(data), file_checksum)
    if data:
        writer.write(data)
    return writer.finish()


def hello_world_archive():
    """
    Return a BytesIO with the two "hello world" entries and the trailer, rewound to the start.
    """
    stream = io.BytesIO()
    builder = Builder("./hello_world", ino=1, uid=1000, gid=1000, mode=0o100644)
    stream = write_entry(stream, builder, HELLO_WORLD)
    builder = Builder("./hello_world2", ino=2, uid=1000, gid=1000, mode=0o100644)
    stream = write_entry(stream, builder, HELLO_WORLD_2)
    stream = trailer(stream)
    stream.seek(0)
    return stream


class CpioTestCase(unittest.TestCase):
    """
    Test case that starts every test with the default configuration.
    """

    def setUp(self):
        self._old_config = cpiolib.conf.config
        cpiolib.conf.config = cpiolib.conf.Options()

    def tearDown(self):
        cpiolib.conf.config = self._old_config
