# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


import io
import os
import stat
from typing import List
from typing import Optional
from typing import Tuple

from . import conf
from . import cpioerr
from .newc import MAX_FIELD_VALUE
from .newc import Entry
from .newc import ModeFileType
from .newc import checksum
from .newc import write_all
from .output import print_msg
from .reader import iter_entries
from .writer import Builder
from .writer import trailer


def _copy(source, writer, bufsize):
    while True:
        data = source.read(bufsize)
        if not data:
            break
        write_all(writer, data)


def _compute_checksum(source, bufsize):
    result = 0
    while True:
        data = source.read(bufsize)
        if not data:
            break
        result = checksum(data, result)
    return result


def write_archive(entries, output, with_checksum: bool = False):
    """
    Write a complete archive to ``output`` and return it.

    ``entries`` is an iterable of ``(Builder, source)`` pairs that is consumed
    lazily. Each source must be readable and seekable; its size is determined
    by seeking to its end. The ``ino`` field is overwritten with the index of
    the entry. The trailer is written only if all entries were written
    successfully, any error propagates immediately.
    """
    bufsize = conf.config["buffer_size"]

    for idx, (builder, source) in enumerate(entries):
        size = source.seek(0, os.SEEK_END)
        source.seek(0, os.SEEK_SET)

        builder.ino = idx
        if with_checksum:
            file_checksum = _compute_checksum(source, bufsize)
            source.seek(0, os.SEEK_SET)
            writer = builder.write_with_checksum(output, size, file_checksum)
        else:
            writer = builder.write(output, size)

        print_msg(builder.name, print_to="verbose")
        _copy(source, writer, bufsize)
        output = writer.finish()

    return trailer(output)


def load_path(path: str, name: Optional[str] = None) -> Tuple[Builder, io.IOBase]:
    """
    Return a ``(Builder, source)`` pair for ``path`` suitable for ``write_archive()``.

    The metadata comes from ``os.lstat()``. Regular files are opened for reading,
    symbolic links store their target as the payload, directories and special
    files have an empty payload.
    """
    st = os.lstat(path)
    builder = Builder(
        path if name is None else name,
        mode=st.st_mode,
        uid=st.st_uid,
        gid=st.st_gid,
        mtime=min(max(int(st.st_mtime), 0), MAX_FIELD_VALUE),
    )

    if stat.S_ISREG(st.st_mode):
        source = open(path, "rb")
    elif stat.S_ISLNK(st.st_mode):
        source = io.BytesIO(os.fsencode(os.readlink(path)))
    else:
        if stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode):
            builder.rdev_major = os.major(st.st_rdev)
            builder.rdev_minor = os.minor(st.st_rdev)
        source = io.BytesIO()
    return builder, source


def list_archive(stream) -> List[Entry]:
    """
    Return the entries of the archive in ``stream`` in their order, without the trailer.
    """
    return [reader.entry for reader in iter_entries(stream)]


def extract_entry(stream, name: str, sink) -> bool:
    """
    Copy the payload of the entry ``name`` to ``sink``.
    Return False if the archive doesn't contain such entry.
    """
    found = False
    for reader in iter_entries(stream):
        if not found and reader.entry.name == name:
            reader.to_writer(sink)
            found = True
    return found


def _get_target_path(dest, name):
    if os.path.isabs(name):
        raise cpioerr.CpioError(f"Refusing to extract an entry with an absolute path: {name}", name)
    dest = os.path.abspath(dest)
    path = os.path.normpath(os.path.join(dest, name))
    if os.path.commonpath([dest, path]) != dest:
        raise cpioerr.CpioError(f"Refusing to extract an entry outside the destination directory: {name}", name)

    # symlinks extracted earlier must not redirect the entry elsewhere
    real_dest = os.path.realpath(dest)
    real_parent = os.path.realpath(os.path.dirname(path))
    if os.path.commonpath([real_dest, real_parent]) != real_dest:
        raise cpioerr.CpioError(f"Refusing to extract an entry through a symbolic link outside the destination directory: {name}", name)
    return path


def _remove_existing(path, name, file_type):
    if not os.path.lexists(path):
        return
    if os.path.isdir(path) and not os.path.islink(path):
        if file_type == ModeFileType.DIRECTORY:
            return
        raise cpioerr.CpioError(f"Refusing to replace an existing directory: {name}", name)
    os.unlink(path)


def extract_archive(stream, dest: str) -> List[str]:
    """
    Extract the archive in ``stream`` into the ``dest`` directory and return the created paths.

    Regular files, directories and symbolic links are supported, other file
    types are skipped with a warning. Existing files and symbolic links are
    replaced, never written through. Ownership is not restored.
    """
    result = []
    for reader in iter_entries(stream):
        entry = reader.entry
        if entry.name in (".", "./"):
            continue
        path = _get_target_path(dest, entry.name)
        file_type = entry.file_type
        perms = stat.S_IMODE(entry.mode)

        if file_type not in (ModeFileType.DIRECTORY, ModeFileType.SYMLINK, ModeFileType.REGULAR):
            print_msg(f"Skipping '{entry.name}', unsupported file type: {oct(entry.mode)}", print_to="warning")
            continue

        os.makedirs(os.path.dirname(path), exist_ok=True)
        _remove_existing(path, entry.name, file_type)

        if file_type == ModeFileType.DIRECTORY:
            os.makedirs(path, exist_ok=True)
            os.chmod(path, perms | stat.S_IRWXU)
        elif file_type == ModeFileType.SYMLINK:
            target = reader.read()
            reader.finish()
            os.symlink(os.fsdecode(target), path)
        else:
            # "x" fails instead of following a symlink created in the meantime
            with open(path, "xb") as f:
                reader.to_writer(f)
            os.chmod(path, perms)

        print_msg(entry.name, print_to="verbose")
        result.append(path)
    return result
