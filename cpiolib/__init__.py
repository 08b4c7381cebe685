__all__ = [
    'archive',
    'babysitter',
    'commandline',
    'conf',
    'cpioerr',
    'newc',
    'reader',
    'writer',
]


__version__ = '0.3.0'


# vim: sw=4 et
