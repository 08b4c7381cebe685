import os
import sys


try:
    IS_INTERACTIVE = os.isatty(sys.stdout.fileno())
except (OSError, ValueError):
    IS_INTERACTIVE = False


# only the styles used by the error and warning prefixes
ESCAPE_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "red": "\033[31m",
    "yellow": "\033[33m",
}


def colorize(text, color):
    """
    Wrap ``text`` in the comma separated ``color`` styles, e.g. "red,bold".
    Plain text is returned when stdout is not a terminal.
    """
    if not (IS_INTERACTIVE and color and text):
        return text
    styles = "".join(ESCAPE_CODES[i] for i in color.split(","))
    return f"{styles}{text}{ESCAPE_CODES['reset']}"
