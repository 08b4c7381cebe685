import contextlib
import sys

import cpiolib.commandline


class CreateCommand(cpiolib.commandline.CpioCommand):
    """
    Create an archive

    The paths are taken from the arguments or, if there are none,
    read from stdin, one path per line. Directories are not traversed,
    their contents need to be listed explicitly.
    """

    name = "create"

    def init_arguments(self):
        self.add_argument(
            "paths",
            metavar="PATH",
            nargs="*",
            help="files, directories and symlinks to add to the archive",
        )
        self.add_argument(
            "-o",
            "--output",
            metavar="ARCHIVE",
            help="write the archive to ARCHIVE instead of stdout",
        )
        self.add_argument(
            "--checksum",
            action="store_true",
            help="write entries in the \"070702\" format with a checksum of their contents",
        )

    def run(self, args):
        from ..archive import load_path
        from ..archive import write_archive

        paths = args.paths
        if not paths:
            paths = [line.rstrip("\n") for line in sys.stdin if line.strip()]

        def entries():
            for path in paths:
                builder, source = load_path(path)
                with source:
                    yield builder, source

        with contextlib.ExitStack() as stack:
            if args.output:
                output = stack.enter_context(open(args.output, "wb"))
            else:
                output = sys.stdout.buffer
            write_archive(entries(), output, with_checksum=args.checksum)
            output.flush()
