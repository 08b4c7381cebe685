# Copyright Contributors to the cpiolib project.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.


import configparser
import errno
import pdb
import signal
import sys
import traceback

from . import commandline
from . import conf as cpiolib_conf
from . import cpioerr


def catchterm(*args):
    raise cpioerr.SignalInterrupt


# Signals which should terminate the program safely
for name in 'SIGBREAK', 'SIGHUP', 'SIGTERM':
    num = getattr(signal, name, None)
    if num:
        signal.signal(num, catchterm)


def run(prg, argv=None):
    try:
        try:
            # we haven't parsed options yet, that's why we rely on argv directly
            if "--debugger" in (argv or sys.argv[1:]):
                pdb.set_trace()
            # here we actually run the program
            prg.main(argv)
            return 0
        except BaseException:
            # If any of these was set via the command-line options,
            # the config values are expected to be changed accordingly.
            # That's why we're working only with the config.
            if cpiolib_conf.config["traceback"] or cpiolib_conf.config["post_mortem"]:
                traceback.print_exc(file=sys.stderr)
            # enter the debugger, if desired
            if cpiolib_conf.config["post_mortem"]:
                if sys.stdout.isatty() and not hasattr(sys, 'ps1'):
                    pdb.post_mortem(sys.exc_info()[2])
                else:
                    print('sys.stdout is not a tty. Not jumping into pdb.', file=sys.stderr)
            raise
    except cpioerr.SignalInterrupt:
        print('killed!', file=sys.stderr)
    except KeyboardInterrupt:
        print('interrupted!', file=sys.stderr)
        return 130
    except cpioerr.UserAbort:
        print('aborted.', file=sys.stderr)
    except cpioerr.WrongArgs as e:
        print(e, file=sys.stderr)
        return 2
    except (cpioerr.ConfigError, cpioerr.NoConfigfile) as e:
        print(e, file=sys.stderr)
    except configparser.Error as e:
        print(e.message, file=sys.stderr)
    except cpioerr.Truncated as e:
        print('Truncated archive:', e, file=sys.stderr)
    except cpioerr.InvalidFormat as e:
        print('Invalid archive:', e, file=sys.stderr)
    except cpioerr.CpioError as e:
        print(e, file=sys.stderr)
    except cpioerr.CpioBaseError as e:
        print('*** Error:', e, file=sys.stderr)
    except OSError as e:
        if e.errno == errno.EPIPE:
            # the reader of our stdout went away, e.g. `cpiolib list archive | head`
            return 1
        print(e, file=sys.stderr)
    return 1


def main():
    sys.exit(run(commandline.CpioMainCommand()))


# vim: sw=4 et
