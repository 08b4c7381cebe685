# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


"""
Reading newc entries.

A ``Reader`` parses one header on construction and wraps the payload of
that entry. It ends with exactly one of ``finish()``, ``to_writer()`` or
``skip()``, each returning the stream positioned at the next header::

    stream = open("archive.cpio", "rb")
    while True:
        reader = Reader(stream)
        if reader.entry.is_trailer():
            break
        print(reader.entry)
        stream = reader.finish()
"""


import os

from . import conf
from . import cpioerr
from .newc import Entry
from .newc import checksum
from .newc import decode_header
from .newc import pad
from .newc import read_exact
from .newc import write_all


class Reader:
    def __init__(self, stream):
        self.entry: Entry = decode_header(stream)
        self.bytes_read = 0
        self._stream = stream
        self._checksum = 0

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.entry.name!r} {self.bytes_read}/{self.entry.file_size}>"

    @property
    def remaining(self) -> int:
        return self.entry.file_size - self.bytes_read

    @property
    def finished(self) -> bool:
        return self._stream is None

    def readable(self) -> bool:
        return True

    def _get_stream(self):
        if self._stream is None:
            raise cpioerr.StreamReleased("The entry has already been consumed", self.entry.name)
        return self._stream

    def _release(self):
        stream = self._stream
        self._stream = None
        return stream

    def read(self, size: int = -1) -> bytes:
        """
        Read at most ``size`` bytes of the payload, all remaining bytes if ``size`` is negative.
        Returns an empty bytes object once the declared file size has been read,
        no matter what else the underlying stream contains.
        """
        stream = self._get_stream()
        limit = self.remaining
        if 0 <= size < limit:
            limit = size
        if limit <= 0:
            return b""

        data = stream.read(limit)
        self.bytes_read += len(data)
        self._checksum = checksum(data, self._checksum)
        return data

    def _copy_remaining(self, sink):
        """
        Move the unread rest of the payload into ``sink`` or drop it if ``sink`` is None.
        """
        stream = self._get_stream()
        bufsize = conf.config["buffer_size"]
        while self.remaining > 0:
            data = stream.read(min(bufsize, self.remaining))
            if not data:
                raise cpioerr.Truncated(self.entry.file_size, self.bytes_read, "payload")
            self.bytes_read += len(data)
            self._checksum = checksum(data, self._checksum)
            if sink is not None:
                write_all(sink, data)

        self._verify_checksum()
        read_exact(stream, len(pad(self.entry.file_size)), "payload padding")

    def _verify_checksum(self):
        if self.entry.checksum is None or not conf.config["verify_checksum"]:
            return
        if self._checksum != self.entry.checksum:
            raise cpioerr.ChecksumError(self.entry.name, self.entry.checksum, self._checksum)

    def finish(self):
        """
        Discard the rest of the entry and return the stream positioned at the next header.
        """
        self._copy_remaining(None)
        return self._release()

    def to_writer(self, sink):
        """
        Copy the unread rest of the payload to ``sink`` and return the stream
        positioned at the next header. Bytes already consumed with ``read()``
        are not copied again.
        """
        self._copy_remaining(sink)
        return self._release()

    def skip(self):
        """
        Seek past the rest of the entry and return the stream positioned at the next header.
        Requires a seekable stream. The checksum is not verified.
        """
        stream = self._get_stream()
        # the header is aligned, so the payload padding depends on the file size only
        remaining = self.remaining + len(pad(self.entry.file_size))
        if remaining > 0:
            stream.seek(remaining, os.SEEK_CUR)
        return self._release()

    def offset(self) -> int:
        """
        Return the absolute position of the stream, for example to copy the
        payload with ``os.copy_file_range()`` or ``os.sendfile()``.
        Requires a seekable stream.
        """
        return self._get_stream().tell()


def _is_seekable(stream):
    seekable = getattr(stream, "seekable", None)
    return seekable is not None and seekable()


def iter_entries(stream):
    """
    Iterate ``Reader`` objects for all entries of the archive in ``stream``
    until the trailer is reached. Readers the caller didn't consume are
    skipped (seekable streams) or finished before the next header is read.
    """
    seekable = _is_seekable(stream)
    while True:
        reader = Reader(stream)
        if reader.entry.is_trailer():
            reader.finish()
            return
        yield reader
        if not reader.finished:
            if seekable:
                reader.skip()
            else:
                reader.finish()
