# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


"""
Writing newc entries.

A ``Builder`` collects the metadata of one entry, ``Builder.write()`` turns
it into a ``Writer`` that takes exactly the declared number of payload bytes
and ``Writer.finish()`` hands the output stream back for the next entry::

    fp = Builder("./hello", uid=1000, gid=1000, mode=0o100644).write(out, 5)
    fp.write(b"hello")
    out = fp.finish()
    out = trailer(out)
"""


from . import conf
from . import cpioerr
from .newc import MAX_FIELD_VALUE
from .newc import MODE_FILE_TYPE_MASK
from .newc import TRAILER_NAME
from .newc import Metadata
from .newc import ModeFileType
from .newc import encode_header
from .newc import pad
from .newc import write_all
from .output import print_msg


class Builder(Metadata):
    """
    Metadata of one entry that is going to be written.

    Fields can be passed to the constructor, assigned as attributes or set
    with the chainable ``set()`` and ``set_mode_file_type()`` methods.
    Nothing is validated against the archive until ``write()`` is called.
    """

    def __init__(self, name: str, **kwargs):
        self._consumed = False
        super().__init__(name=name, **kwargs)

    def set(self, **kwargs) -> "Builder":
        for key, value in kwargs.items():
            if key not in self.__fields__:
                raise TypeError(f"'{self.__class__.__name__}' has no field '{key}'")
            setattr(self, key, value)
        return self

    def set_mode_file_type(self, file_type: ModeFileType) -> "Builder":
        self.mode = (self.mode & ~MODE_FILE_TYPE_MASK) | int(ModeFileType(file_type))
        return self

    def write(self, stream, file_size: int) -> "Writer":
        """
        Return a ``Writer`` that writes the entry in the "070701" format to ``stream``.
        """
        return self._write(stream, file_size, None)

    def write_with_checksum(self, stream, file_size: int, file_checksum: int) -> "Writer":
        """
        Return a ``Writer`` that writes the entry in the "070702" format to ``stream``.
        ``file_checksum`` is the sum of all payload bytes, see ``newc.checksum()``.
        """
        return self._write(stream, file_size, file_checksum)

    def _write(self, stream, file_size, file_checksum):
        if self._consumed:
            raise cpioerr.BuilderConsumed("The builder has already been written", self.name)
        if not 0 <= file_size <= MAX_FIELD_VALUE:
            raise ValueError(f"File size doesn't fit into 32 bits: {file_size}")
        header = encode_header(self, file_size, file_checksum)
        self._consumed = True
        return Writer(stream, header, file_size, name=self.name)


class Writer:
    """
    Writes one entry into the wrapped stream.

    The header is written lazily on the first ``write()`` or on ``finish()``
    and the total payload must not exceed the size declared in the header.
    """

    def __init__(self, stream, header: bytes, file_size: int, name=None):
        self._stream = stream
        self._header = header
        self.header_size = len(header)
        self.file_size = file_size
        self.written = 0
        self.name = name

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None and not self.finished:
            self.finish()

    @property
    def finished(self) -> bool:
        return self._stream is None

    def writable(self) -> bool:
        return True

    def _get_stream(self):
        if self._stream is None:
            raise cpioerr.StreamReleased("The entry has already been finished", self.name)
        return self._stream

    def _write_header(self):
        if self._header:
            write_all(self._stream, self._header)
            self._header = b""

    def write(self, data) -> int:
        stream = self._get_stream()
        if self.written + len(data) > self.file_size:
            raise cpioerr.ExceedsDeclaredSize(self.file_size, self.written, len(data))

        self._write_header()
        num = stream.write(data)
        if num is None:
            # raw streams in non-blocking mode report "nothing written" as None
            num = 0
        self.written += num
        return num

    def flush(self):
        self._get_stream().flush()

    def finish(self):
        """
        Write the header if nothing has been written yet, then the padding
        after the payload, and return the underlying stream.
        """
        stream = self._get_stream()
        if self.written != self.file_size and conf.config["strict_size"]:
            raise cpioerr.IncompleteEntry(self.file_size, self.written)

        self._write_header()

        if self.written == self.file_size:
            padding = pad(self.header_size + self.file_size)
            write_all(stream, padding)
            stream.flush()
        else:
            print_msg(
                f"Entry '{self.name}' finished after {self.written} of {self.file_size} bytes, skipping padding",
                print_to="debug",
            )

        self._stream = None
        return stream


def trailer(stream):
    """
    Write the trailer entry that marks the end of an archive and return ``stream``.
    """
    builder = Builder(TRAILER_NAME, nlink=1)
    return builder.write(stream, 0).finish()
