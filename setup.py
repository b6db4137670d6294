#! /usr/bin/env python

import os.path
import sys

from setuptools import setup

version = "1.0.0"

if (not os.path.exists(os.path.join("xmppwire","version.py"))
                                    or "make_version" in sys.argv):
    with open("xmppwire/version.py", "w") as version_py:
        version_py.write("# pylint: disable=C0111,C0103\n")
        version_py.write("version = {0!r}\n".format(version))
    if "make_version" in sys.argv:
        sys.exit(0)
else:
    exec(open(os.path.join("xmppwire", "version.py")).read())

setup(
    name =      'xmppwire',
    version =   version,
    description =   'Threaded XMPP client connection with legacy authentication',
    license =   'LGPL',
    classifiers = [
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: GNU Library or Lesser General Public License (LGPL)",
            "Operating System :: POSIX",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Topic :: Communications",
            "Topic :: Communications :: Chat",
            "Topic :: Internet",
            "Topic :: Software Development :: Libraries :: Python Modules",
        ],
    python_requires = '>=3.6',
    install_requires = ['dnspython >= 2.0'],
    extras_require = {
        'test': ['pytest'],
    },
    packages = [
        'xmppwire',
        'xmppwire.test',
    ],
)
