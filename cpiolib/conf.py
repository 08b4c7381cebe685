# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


"""
This module handles configuration of cpiolib.


Configuring cpiolib from cpiolibrc
----------------------------------

To configure cpiolib from the config file, do following::

    import cpiolib.conf

    # see ``get_config()`` documentation for available function arguments
    cpiolib.conf.get_config()


Configuring cpiolib from API
----------------------------

The library works with the defaults from ``Options()`` without any config file.
To change them, modify the main config object directly::

    import cpiolib.conf

    cpiolib.conf.config["buffer_size"] = 1024 * 1024
    cpiolib.conf.config.strict_size = False
"""


import configparser
import os

from . import cpioerr
from .util import xdg
from .util.models import *


__all__ = [
    "get_config",
    "identify_conf",
    "Options",
    "config",
]


class Options(BaseModel):
    """
    Main configuration options.
    """

    # compat function with the config dict
    def _get_field_name(self, name):
        if name in self.__fields__:
            return name

        for field_name, field in self.__fields__.items():
            ini_key = field.extra.get("ini_key", None)
            if ini_key == name:
                return field_name

        return None

    # compat function with the config dict
    def __getitem__(self, name):
        field_name = self._get_field_name(name)
        if field_name is None:
            raise KeyError(name)
        return getattr(self, field_name)

    # compat function with the config dict
    def __setitem__(self, name, value):
        field_name = self._get_field_name(name)
        if field_name is None:
            raise KeyError(name)
        setattr(self, field_name, value)

    # compat function with the config dict
    def __contains__(self, name):
        return self._get_field_name(name) is not None

    # compat function with the config dict
    def get(self, name, default=None):
        try:
            return self[name]
        except KeyError:
            return default

    def set_value_from_string(self, name, value):
        field_name = self._get_field_name(name)
        if field_name is None:
            raise KeyError(name)
        field = self.__fields__[field_name]

        if not isinstance(value, str):
            setattr(self, field_name, value)
            return

        if field.origin_type is bool:
            if value.strip().lower() in ["1", "yes", "true", "on"]:
                setattr(self, field_name, True)
                return
            if value.strip().lower() in ["0", "no", "false", "off"]:
                setattr(self, field_name, False)
                return
            raise ValueError(f"Option '{name}' expects a boolean value, got '{value}'")

        if field.origin_type is int:
            setattr(self, field_name, int(value))
            return

        setattr(self, field_name, value)

    conffile: Optional[str] = Field(
        default=None,
        description="""
            Path to the config file the options were loaded from.
            """,
        exclude=True,
    )  # type: ignore[assignment]

    debug: bool = Field(
        default=False,
        description="""
            Print debug messages to stderr.
            """,
    )  # type: ignore[assignment]

    verbose: bool = Field(
        default=False,
        description="""
            Print more information, for example every file added to an archive.
            """,
    )  # type: ignore[assignment]

    quiet: bool = Field(
        default=False,
        description="""
            Print as little as possible.
            """,
    )  # type: ignore[assignment]

    traceback: bool = Field(
        default=False,
        description="""
            Print call traces in case of errors.
            """,
    )  # type: ignore[assignment]

    post_mortem: bool = Field(
        default=False,
        description="""
            Jump into a debugger in case of errors.
            """,
        ini_key="post-mortem",
    )  # type: ignore[assignment]

    buffer_size: int = Field(
        default=64 * 1024,
        description="""
            Size of the chunks used when copying payload data in and out of archives.
            """,
        ini_key="buffer-size",
        min_value=1,
    )  # type: ignore[assignment]

    strict_size: bool = Field(
        default=True,
        description="""
            Fail when an entry is finished before its declared size has been written.
            When disabled, such an entry is finished without the trailing padding.
            """,
        ini_key="strict-size",
    )  # type: ignore[assignment]

    verify_checksum: bool = Field(
        default=True,
        description="""
            Verify the checksum of "070702" entries whose payload was read completely.
            """,
        ini_key="verify-checksum",
    )  # type: ignore[assignment]


# initialize ``config`` with the defaults
# the library can be used without calling ``get_config()``
config = Options()


def identify_conf():
    if "CPIOLIB_CONFIG" in os.environ:
        return os.environ.get("CPIOLIB_CONFIG")
    return os.path.join(xdg.XDG_CONFIG_HOME, "cpiolib", "cpiolibrc")


def get_configParser(conffile):
    cp = configparser.ConfigParser(interpolation=None)
    try:
        cp.read(conffile, encoding="utf-8")
    except configparser.Error as e:
        raise cpioerr.ConfigError(str(e), conffile)
    return cp


def get_config(override_conffile=None,
               override_debug=None,
               override_traceback=None,
               override_post_mortem=None,
               override_quiet=None,
               override_verbose=None,
               overrides=None
               ):
    """
    Configure cpiolib.

    The configuration options are loaded with the following priority:
        1. environment variables: ``CPIOLIB_<uppercase_option>``
        2. override arguments provided to ``get_config()``
        3. the ``[general]`` section of the cpiolibrc config file
    """

    if overrides:
        overrides = overrides.copy()
    else:
        overrides = {}

    if override_debug is not None:
        overrides["debug"] = override_debug

    if override_traceback is not None:
        overrides["traceback"] = override_traceback

    if override_post_mortem is not None:
        overrides["post_mortem"] = override_post_mortem

    if override_quiet is not None:
        overrides["quiet"] = override_quiet

    if override_verbose is not None:
        overrides["verbose"] = override_verbose

    if override_conffile is not None:
        conffile = override_conffile
        must_exist = True
    else:
        conffile = identify_conf()
        must_exist = "CPIOLIB_CONFIG" in os.environ

    cp = configparser.ConfigParser(interpolation=None)
    if conffile in ["", "/dev/null"]:
        cp.add_section("general")
    else:
        conffile = os.path.expanduser(conffile)
        if os.path.exists(conffile):
            cp = get_configParser(conffile)
            if not cp.has_section("general"):
                raise cpioerr.ConfigError("missing the [general] section", conffile)
        elif must_exist:
            raise cpioerr.NoConfigfile(conffile, "Use an existing file or unset the config file option.")
        else:
            cp.add_section("general")

    global config

    new_config = Options()
    new_config.conffile = conffile or None

    known_ini_keys = set()
    for name, field in new_config.__fields__.items():
        if field.exclude:
            continue
        ini_key = field.extra.get("ini_key", name)
        known_ini_keys.add(ini_key)
        known_ini_keys.add(name)
        env_key = f"CPIOLIB_{name.upper()}"

        # priority: env, overrides, config
        if env_key in os.environ:
            value = os.environ[env_key]
            overrides.pop(name, None)
            overrides.pop(ini_key, None)
        elif name in overrides:
            value = overrides.pop(name)
        elif ini_key in overrides:
            value = overrides.pop(ini_key)
        elif ini_key in cp["general"]:
            value = cp["general"][ini_key]
        elif name in cp["general"]:
            value = cp["general"][name]
        else:
            continue

        try:
            new_config.set_value_from_string(name, value)
        except (TypeError, ValueError) as e:
            raise cpioerr.ConfigError(f"{ini_key}: {e}", conffile)

    unknown_keys = [i for i in cp["general"] if i not in known_ini_keys]
    if unknown_keys:
        raise cpioerr.ConfigError(f"unknown options: {', '.join(sorted(unknown_keys))}", conffile)

    if overrides:
        unused_overrides_str = ", ".join(f"'{i}'" for i in overrides)
        raise cpioerr.ConfigError(f"unknown overrides: {unused_overrides_str}", conffile)

    config = new_config
