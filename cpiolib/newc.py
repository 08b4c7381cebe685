# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


"""
Header codec of the "new ascii" (SVR4, newc) cpio format.

Every entry starts with a fixed 110 byte header::

    6   magic       "070701" (no checksum) or "070702" (with checksum)
    8   ino         hexadecimal, like all following fields
    8   mode        permission bits and file type
    8   uid
    8   gid
    8   nlink
    8   mtime
    8   filesize
    8   devmajor
    8   devminor
    8   rdevmajor
    8   rdevminor
    8   namesize    length of the name including the terminating NUL
    8   check       sum of all payload bytes for "070702", 0 otherwise

It is followed by the NUL terminated name, zero padding up to a multiple
of 4 bytes (counted from the start of the header), the payload and another
zero padding up to a multiple of 4 bytes.

The archive ends with an entry called "TRAILER!!!".
"""


import enum
import errno
from typing import Optional

from . import cpioerr
from .util.models import *


HEADER_LEN = 110

MAGIC_LEN = 6
MAGIC_NEWASCII = b"070701"
MAGIC_NEWCRC = b"070702"

FIELD_LEN = 8
FIELD_NAMES = (
    "ino",
    "mode",
    "uid",
    "gid",
    "nlink",
    "mtime",
    "filesize",
    "devmajor",
    "devminor",
    "rdevmajor",
    "rdevminor",
    "namesize",
    "check",
)
MAX_FIELD_VALUE = 0xFFFFFFFF

TRAILER_NAME = "TRAILER!!!"

# metadata fields shared by Builder and Entry, in header order
METADATA_FIELDS = (
    "ino",
    "mode",
    "uid",
    "gid",
    "nlink",
    "mtime",
    "dev_major",
    "dev_minor",
    "rdev_major",
    "rdev_minor",
)


def pad(length: int) -> bytes:
    """
    Return the zero bytes that align ``length`` to a multiple of 4.
    """
    return b"\0" * ((4 - length % 4) % 4)


def checksum(data: bytes, initial: int = 0) -> int:
    """
    Compute the "070702" checksum: the sum of all bytes truncated to 32 bits.
    Pass the previous result as ``initial`` to checksum data in chunks.
    """
    return (initial + sum(data)) & MAX_FIELD_VALUE


def read_exact(stream, size: int, what: str = "data") -> bytes:
    """
    Read exactly ``size`` bytes from ``stream`` or raise ``Truncated``.
    """
    result = bytearray()
    while len(result) < size:
        chunk = stream.read(size - len(result))
        if not chunk:
            raise cpioerr.Truncated(size, len(result), what)
        result += chunk
    return bytes(result)


def write_all(stream, data):
    """
    Write all of ``data`` to ``stream``, repeating the call on short writes.
    """
    view = memoryview(data)
    while view:
        num = stream.write(view)
        if not num:
            raise OSError(errno.EIO, f"Stream accepted no data, {len(view)} bytes left to write")
        view = view[num:]


class ModeFileType(enum.IntEnum):
    """
    File type bits stored in the upper part of the ``mode`` field.
    """

    FIFO = 0o010000
    CHAR = 0o020000
    DIRECTORY = 0o040000
    BLOCK = 0o060000
    REGULAR = 0o100000
    NETWORK_SPECIAL = 0o110000
    SYMLINK = 0o120000
    SOCKET = 0o140000

    @staticmethod
    def from_mode(mode: int) -> Optional["ModeFileType"]:
        try:
            return ModeFileType(mode & MODE_FILE_TYPE_MASK)
        except ValueError:
            return None


MODE_FILE_TYPE_MASK = 0o170000


class Metadata(BaseModel):
    """
    Metadata fields common to entries that are written and entries that are read.
    """

    name: str = Field(
        description="""
            Name of the file in the archive.
            """,
    )  # type: ignore[assignment]

    ino: int = Field(
        default=0,
        description="""
            Inode number. Usually just a unique index of the file in the archive.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    mode: int = Field(
        default=0,
        description="""
            Permission bits and the file type, the same as the ``st_mode`` of a stat result.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    uid: int = Field(default=0, min_value=0, max_value=MAX_FIELD_VALUE)  # type: ignore[assignment]

    gid: int = Field(default=0, min_value=0, max_value=MAX_FIELD_VALUE)  # type: ignore[assignment]

    nlink: int = Field(
        default=1,
        description="""
            Number of links to the file.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    mtime: int = Field(
        default=0,
        description="""
            Modification time in seconds since the epoch.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    dev_major: int = Field(
        default=0,
        description="""
            Major number of the device the file resides on.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    dev_minor: int = Field(
        default=0,
        description="""
            Minor number of the device the file resides on.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    rdev_major: int = Field(
        default=0,
        description="""
            Major number of the device the file represents, for block and char special files.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    rdev_minor: int = Field(
        default=0,
        description="""
            Minor number of the device the file represents, for block and char special files.
            """,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    @property
    def file_type(self) -> Optional[ModeFileType]:
        return ModeFileType.from_mode(self.mode)

    def is_trailer(self) -> bool:
        return self.name == TRAILER_NAME


class Entry(Metadata):
    """
    Metadata of an entry read back from an archive.
    """

    file_size: int = Field(
        default=0,
        min_value=0,
        max_value=MAX_FIELD_VALUE,
    )  # type: ignore[assignment]

    checksum: Optional[int] = Field(
        default=None,
        description="""
            Checksum of the payload if the entry uses the "070702" format, None otherwise.
            """,
    )  # type: ignore[assignment]

    header_size: int = Field(
        default=0,
        description="""
            Size of the header including the name and its padding.
            """,
        exclude=True,
    )  # type: ignore[assignment]

    def __str__(self):
        return f"{self.name} ({self.file_size} bytes)"


def encode_header(metadata: Metadata, file_size: int, file_checksum: Optional[int] = None) -> bytes:
    """
    Build a newc header with the name and its padding.
    The "070702" magic is used if ``file_checksum`` is specified.
    """
    name = metadata.name.encode("utf-8")
    namesize = len(name) + 1

    values = [getattr(metadata, i) for i in METADATA_FIELDS]
    # filesize follows mtime, namesize and check close the header
    values.insert(6, file_size)
    values.append(namesize)
    values.append(file_checksum or 0)

    for field_name, value in zip(FIELD_NAMES, values):
        if not 0 <= value <= MAX_FIELD_VALUE:
            raise ValueError(f"Value of the '{field_name}' header field doesn't fit into 32 bits: {value}")

    header = bytearray(MAGIC_NEWCRC if file_checksum is not None else MAGIC_NEWASCII)
    for value in values:
        header += b"%08x" % value
    header += name + b"\0"
    header += pad(len(header))
    return bytes(header)


def _decode_field(raw: bytes, field_name: str) -> int:
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError:
        raise cpioerr.InvalidFormat(f"Header field '{field_name}' is not ASCII: {raw!r}")
    # int() would also accept signs, whitespace and underscores
    if len(text) != FIELD_LEN or any(i not in "0123456789abcdefABCDEF" for i in text):
        raise cpioerr.InvalidFormat(f"Header field '{field_name}' is not a hexadecimal number: {raw!r}")
    return int(text, 16)


def decode_header(stream) -> Entry:
    """
    Read one header including the name and its padding from ``stream``.
    The stream is left positioned at the start of the payload.
    """
    magic = read_exact(stream, MAGIC_LEN, "magic")
    if magic == MAGIC_NEWASCII:
        has_checksum = False
    elif magic == MAGIC_NEWCRC:
        has_checksum = True
    else:
        raise cpioerr.InvalidFormat(f"Invalid magic number: {magic!r}")

    raw_fields = read_exact(stream, HEADER_LEN - MAGIC_LEN, "header")
    fields = {}
    for num, field_name in enumerate(FIELD_NAMES):
        raw = raw_fields[num * FIELD_LEN:(num + 1) * FIELD_LEN]
        fields[field_name] = _decode_field(raw, field_name)

    namesize = fields["namesize"]
    name = read_exact(stream, namesize, "name")
    if not name.endswith(b"\0"):
        raise cpioerr.InvalidFormat(f"Entry name is not NUL terminated: {name!r}")
    # some tools (dracut-cpio) pad the name with extra NULs to align the payload to a filesystem block
    name = name.rstrip(b"\0")
    try:
        name = name.decode("utf-8")
    except UnicodeDecodeError:
        raise cpioerr.InvalidFormat(f"Entry name is not valid UTF-8: {name!r}")

    padding = pad(HEADER_LEN + namesize)
    read_exact(stream, len(padding), "name padding")

    return Entry(
        name=name,
        ino=fields["ino"],
        mode=fields["mode"],
        uid=fields["uid"],
        gid=fields["gid"],
        nlink=fields["nlink"],
        mtime=fields["mtime"],
        file_size=fields["filesize"],
        dev_major=fields["devmajor"],
        dev_minor=fields["devminor"],
        rdev_major=fields["rdevmajor"],
        rdev_minor=fields["rdevminor"],
        checksum=fields["check"] if has_checksum else None,
        header_size=HEADER_LEN + namesize + len(padding),
    )
