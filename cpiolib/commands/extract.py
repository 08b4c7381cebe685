import contextlib
import os
import sys

import cpiolib.commandline


class ExtractCommand(cpiolib.commandline.CpioCommand):
    """
    Extract files from an archive

    Either extract a single entry NAME into the OUTPUT file
    or the whole archive into a directory.
    """

    name = "extract"

    def init_arguments(self):
        self.add_argument(
            "archive",
            help="path to the archive, '-' reads it from stdin",
        )
        self.add_argument(
            "entry_name",
            metavar="NAME",
            nargs="?",
            help="name of the entry to extract",
        )
        self.add_argument(
            "output",
            metavar="OUTPUT",
            nargs="?",
            help="file the entry NAME gets written to",
        )
        self.add_argument(
            "-C",
            "--directory",
            metavar="DIR",
            default=".",
            help="extract the whole archive into DIR, defaults to the current directory",
        )

    def run(self, args):
        from .. import cpioerr
        from ..archive import extract_archive
        from ..archive import extract_entry
        from ..output import print_msg

        if args.entry_name and not args.output:
            raise cpioerr.WrongArgs("Please specify the OUTPUT file for the extracted entry")

        with contextlib.ExitStack() as stack:
            if args.archive == "-":
                stream = sys.stdin.buffer
            else:
                stream = stack.enter_context(open(args.archive, "rb"))

            if not args.entry_name:
                extract_archive(stream, args.directory)
                return

            sink = open(args.output, "wb")
            try:
                with sink:
                    found = extract_entry(stream, args.entry_name, sink)
            except Exception:
                os.unlink(args.output)
                raise
            if not found:
                os.unlink(args.output)
                raise cpioerr.CpioError(f"'{args.entry_name}' does not exist in archive", args.archive)
            print_msg(f"{args.entry_name} -> {args.output}", print_to="verbose")
