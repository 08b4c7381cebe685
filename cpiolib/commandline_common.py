import argparse
import importlib
import inspect
import pkgutil
import textwrap
from typing import List
from typing import Tuple


class HelpFormatter(argparse.RawDescriptionHelpFormatter):
    def _split_lines(self, text, width):
        lines = []
        for line in text.strip().splitlines():
            # keep blank lines that separate paragraphs
            lines.extend(textwrap.wrap(line, width) or [""])
        return lines


class Command:
    """
    A subcommand of a ``MainCommand``.

    The first line of the docstring is the help shown in the command list,
    the whole docstring is the description shown by ``<command> --help``.
    """

    #: Name of the command as used on the command line.
    name: str = None

    #: Alternative names of the command.
    aliases: List[str] = []

    def __init__(self, full_name, parent=None):
        if not self.name:
            raise ValueError(f"Command '{full_name}' has no 'name' set")

        self.full_name = full_name
        self.parent = parent

        if parent is None:
            self.parser = argparse.ArgumentParser(
                prog=self.name,
                description=self.get_description(),
                formatter_class=HelpFormatter,
                usage="%(prog)s [global opts] <command> [--help] [opts] [args]",
            )
        else:
            self.parser = parent.add_subparser(self)
            # global options are accepted after the command name too
            for args, kwargs in parent.global_arguments:
                kwargs = dict(kwargs, help=argparse.SUPPRESS, default=argparse.SUPPRESS)
                self.parser.add_argument(*args, **kwargs)

        self.init_arguments()

    def __repr__(self):
        return f"<cpiolib command {self.full_name} at {id(self):#x}>"

    def get_help(self):
        return self.get_description().split("\n", 1)[0]

    def get_description(self):
        return textwrap.dedent(self.__doc__ or "").strip()

    def add_argument(self, *args, **kwargs):
        return self.parser.add_argument(*args, **kwargs)

    def init_arguments(self):
        """
        Override to add arguments to the command's parser.
        """

    def post_parse_args(self, args):
        pass

    def run(self, args):
        """
        Override to implement the command.
        Keep it a thin wrapper on top of the library functions.
        """
        raise NotImplementedError()


class MainCommand(Command):
    """
    The executable. Options added in ``init_arguments()`` are global and
    subcommands are loaded from the packages listed in ``MODULES``.
    """

    #: Tuples of (module prefix, package path) the commands are loaded from.
    MODULES: Tuple[Tuple[str, str], ...] = ()

    def __init__(self):
        self.global_arguments = []
        self.subparsers = None
        self.command_classes = {}
        super().__init__(self.__class__.__name__)

    def add_argument(self, *args, **kwargs):
        if args and args[0].startswith("-"):
            self.global_arguments.append((args, kwargs))
        return super().add_argument(*args, **kwargs)

    def add_subparser(self, command):
        if self.subparsers is None:
            self.subparsers = self.parser.add_subparsers(dest="command", title="commands")

        for name in [command.name] + list(command.aliases):
            if name in self.subparsers.choices:
                raise argparse.ArgumentError(self.subparsers, f"conflicting command name: {name}")

        parser = self.subparsers.add_parser(
            command.name,
            aliases=command.aliases,
            help=command.get_help(),
            description=command.get_description(),
            formatter_class=HelpFormatter,
            prog=f"{self.name} [global opts] {command.name}",
        )
        parser.set_defaults(_selected_command=command)
        return parser

    def load_command(self, cls, module_prefix):
        full_name = f"{module_prefix}.{cls.__name__}"
        cmd = cls(full_name, parent=self)
        self.command_classes[full_name] = cmd
        return cmd

    def load_commands(self):
        for module_prefix, module_path in self.MODULES:
            for module_info in sorted(pkgutil.iter_modules(path=[module_path]), key=lambda i: i.name):
                full_name = f"{module_prefix}.{module_info.name}"
                mod = importlib.import_module(full_name)
                for _, cls in inspect.getmembers(mod, inspect.isclass):
                    # skip imported classes such as the base classes
                    if issubclass(cls, Command) and cls.__module__ == full_name:
                        self.load_command(cls, module_prefix)

    def parse_args(self, args=None):
        return self.parser.parse_args(args)

    def run(self, args):
        cmd = getattr(args, "_selected_command", None)
        if not cmd:
            self.parser.error("Please specify a command")
        self.post_parse_args(args)
        cmd.post_parse_args(args)
        return cmd.run(args)
