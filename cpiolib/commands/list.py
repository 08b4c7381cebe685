import contextlib
import stat
import sys
import time

import cpiolib.commandline


class ListCommand(cpiolib.commandline.CpioCommand):
    """
    List the contents of an archive
    """

    name = "list"
    aliases = ["ls"]

    def init_arguments(self):
        self.add_argument(
            "archive",
            help="path to the archive, '-' reads it from stdin",
        )
        self.add_argument(
            "-l",
            "--long",
            action="store_true",
            help="show mode, owner, size and modification time",
        )

    def run(self, args):
        from ..archive import list_archive
        from ..output import safe_print

        with contextlib.ExitStack() as stack:
            if args.archive == "-":
                stream = sys.stdin.buffer
            else:
                stream = stack.enter_context(open(args.archive, "rb"))

            for entry in list_archive(stream):
                if args.long:
                    mtime = time.strftime("%Y-%m-%d %H:%M", time.gmtime(entry.mtime))
                    owner = f"{entry.uid}/{entry.gid}"
                    safe_print(f"{stat.filemode(entry.mode)} {owner:<11} {entry.file_size:>10} {mtime} {entry.name}")
                else:
                    safe_print(f"{entry.name} ({entry.file_size} bytes)")
