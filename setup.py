#!/usr/bin/env python3

import os.path
import re

import setuptools


def get_version():
    path = os.path.join(os.path.dirname(__file__), "cpiolib", "__init__.py")
    with open(path, encoding="utf-8") as f:
        return re.search(r"^__version__ = '([^']+)'", f.read(), re.M).group(1)


with open("README.md") as fh:
    lines = fh.readlines()
    while lines:
        line = lines[0].strip()
        if not line or line.startswith("["):
            # skip leading empty lines
            # skip leading lines with links to badges
            lines.pop(0)
            continue
        break
    long_description = "".join(lines)


setuptools.setup(
    name='cpiolib',
    version=get_version(),
    description='Reader and writer for newc (SVR4) cpio archives',
    long_description=long_description,
    long_description_content_type="text/markdown",
    author='cpiolib contributors',
    license='GPLv2+',
    platforms=['Linux', 'MacOS X', 'FreeBSD'],
    keywords=['cpio', 'newc', 'archive', 'initramfs'],
    packages=['cpiolib', 'cpiolib.commands', 'cpiolib.output', 'cpiolib.util'],
    python_requires='>=3.8',
    install_requires=[],
    extras_require={
        'test': ['typeguard'],
    },
    entry_points={
        'console_scripts': [
            'cpiolib=cpiolib.babysitter:main',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: System :: Archiving",
        "Topic :: System :: Archiving :: Packaging",
    ],
)
