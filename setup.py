#!/usr/bin/env python3

# GRIT - submission intake and verification
# Copyright © 2026 The GRIT development team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Build and installation routines for GRIT.

"""

import os
import re

from setuptools import setup, find_packages


def find_version():
    """Return the version string obtained from grit/__init__.py"""
    path = os.path.join("grit", "__init__.py")
    with open(path, "rt", encoding="utf-8") as f:
        version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                                  f.read(), re.M)
    if version_match is not None:
        return version_match.group(1)
    raise RuntimeError("Unable to find version string.")


setup(
    name="grit",
    version=find_version(),
    author="The GRIT development team",
    description="Intake, fingerprinting and verification "
                "of programming assignment submissions",
    packages=find_packages(include=["grit", "grit.*",
                                    "gritcommon", "gritcommon.*",
                                    "grittestsuite", "grittestsuite.*"]),
    python_requires=">=3.11",
    install_requires=[
        "gevent",
        "chardet",
        "patool",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "grit.languages": [
            "C11 / gcc=grit.grading.languages.c11_gcc:C11Gcc",
            "C++ / g++=grit.grading.languages.cpp_gpp:CppGpp",
            "Haskell / ghc=grit.grading.languages.haskell_ghc:HaskellGhc",
            "Java / JDK=grit.grading.languages.java_jdk:JavaJDK",
            "Python 3 / CPython=grit.grading.languages.python3_cpython:Python3CPython",
        ],
    },
    keywords="programming assignment submission grader verification",
    license="Affero General Public License v3",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Natural Language :: English",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: "
        "GNU Affero General Public License v3",
    ]
)
