import os

XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME", "~/.config")
