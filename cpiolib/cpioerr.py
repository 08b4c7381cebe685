# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


class CpioBaseError(Exception):
    def __init__(self, args=()):
        super().__init__()
        self.args = args

    def __str__(self):
        return ''.join(self.args)


class UserAbort(CpioBaseError):
    """Exception raised when the user requested abortion"""


class SignalInterrupt(Exception):
    """Exception raised on SIGTERM and SIGHUP."""


class WrongArgs(CpioBaseError):
    """Exception raised by the cli for wrong arguments usage"""


class ConfigError(CpioBaseError):
    """Exception raised when there is an error in the config file"""

    def __init__(self, msg, fname):
        super().__init__()
        self.msg = msg
        self.file = fname

    def __str__(self):
        return f"Error in config file {self.file}\n   {self.msg}"


class NoConfigfile(CpioBaseError):
    """Exception raised when the configfile cannot be found"""

    def __init__(self, fname, msg):
        super().__init__()
        self.file = fname
        self.msg = msg

    def __str__(self):
        return f"Config file cannot be found: {self.file}\n   {self.msg}"


class CpioError(CpioBaseError):
    """base class for all cpio related errors"""

    def __init__(self, msg, fn=None):
        super().__init__()
        self.msg = msg
        self.file = fn

    def __str__(self):
        if self.file is None:
            return self.msg
        return f"{self.file}: {self.msg}"


class InvalidFormat(CpioError):
    """
    The bytes at the current stream position are not a valid newc header:
    unknown magic, a field that is not hexadecimal, a name that is not
    NUL-terminated or not valid UTF-8.
    """


class Truncated(CpioError, EOFError):
    """The stream ended in the middle of a header, name, payload or padding."""

    def __init__(self, expected, got, what="data"):
        super().__init__(f"unexpected end of stream while reading {what}: expected {expected} bytes, got {got}")
        self.expected = expected
        self.got = got


class DeclaredSizeError(CpioError):
    """Base class for mismatches between the declared and the written payload size"""

    def __init__(self, msg, declared, written):
        super().__init__(msg)
        self.declared = declared
        self.written = written


class ExceedsDeclaredSize(DeclaredSizeError):
    """Raised when a write would go past the payload size declared in the header"""

    def __init__(self, declared, written, requested):
        super().__init__(
            f"trying to write more than the declared file size: {declared} declared, "
            f"{written} written, {requested} requested",
            declared,
            written,
        )
        self.requested = requested


class IncompleteEntry(DeclaredSizeError):
    """Raised when an entry is finished before its declared payload was written"""

    def __init__(self, declared, written):
        super().__init__(
            f"entry finished before the declared file size was written: {declared} declared, {written} written",
            declared,
            written,
        )


class ChecksumError(CpioError):
    """Raised when the checksum of a "070702" entry doesn't match its payload"""

    def __init__(self, name, expected, actual):
        super().__init__(f"checksum mismatch: expected {expected:08x}, computed {actual:08x}", name)
        self.expected = expected
        self.actual = actual


class StreamReleased(CpioError):
    """Raised when a reader or writer is used after it has handed its stream back"""


class BuilderConsumed(CpioError):
    """Raised when a builder that has already produced a writer is written again"""


# vim: sw=4 et
