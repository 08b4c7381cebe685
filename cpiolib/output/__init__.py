from .output import print_msg
from .output import safe_print
from .output import sanitize_text
from .tty import colorize
