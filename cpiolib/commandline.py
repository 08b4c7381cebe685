# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


from . import commands as cpiolib_commands
from . import conf
from .commandline_common import Command
from .commandline_common import MainCommand


class CpioCommand(Command):
    """
    Inherit from this class to create new commands.
    """


class CpioMainCommand(MainCommand):
    """
    Create, list and extract cpio archives in the "new ascii" (newc) format.
    """

    name = "cpiolib"

    MODULES = (
        ("cpiolib.commands", cpiolib_commands.__path__[0]),
    )

    def init_arguments(self):
        self.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="increase verbosity",
        )
        self.add_argument(
            "-q",
            "--quiet",
            action="store_true",
            help="be quiet, not verbose",
        )
        self.add_argument(
            "--debug",
            action="store_true",
            help="print info useful for debugging",
        )
        self.add_argument(
            "--debugger",
            action="store_true",
            help="jump into the debugger before executing anything",
        )
        self.add_argument(
            "--post-mortem",
            action="store_true",
            help="jump into the debugger in case of errors",
        )
        self.add_argument(
            "--traceback",
            action="store_true",
            help="print call trace in case of errors",
        )
        self.add_argument(
            "--config",
            dest="conffile",
            metavar="FILE",
            help="specify alternate configuration file",
        )

    def post_parse_args(self, args):
        # store_true options are passed only when set, so the config file can still enable them
        conf.get_config(
            override_conffile=args.conffile,
            override_debug=args.debug or None,
            override_post_mortem=args.post_mortem or None,
            override_quiet=args.quiet or None,
            override_traceback=args.traceback or None,
            override_verbose=args.verbose or None,
        )

        # write config values back to args
        for i in ["debug", "post_mortem", "quiet", "traceback", "verbose"]:
            setattr(args, i, conf.config[i])

    @classmethod
    def main(cls, argv=None, run=True):
        """
        Initialize CpioMainCommand, load all commands and run the selected command.
        """
        cmd = cls()
        cmd.load_commands()
        if run:
            args = cmd.parse_args(args=argv)
            cmd.run(args)
        else:
            args = None
        return cmd, args


def get_parser():
    """
    Needed by argparse-manpage to generate man pages from the argument parser.
    """
    main, _ = CpioMainCommand.main(run=False)
    return main.parser
