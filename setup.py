#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup script for AgroGHG

Agricultural GHG emissions engine (GHG Protocol Brasil, IPCC AR4 GWP-100).
"""

import re
from pathlib import Path

from setuptools import find_packages, setup

# Version is declared once, in agroghg/_version.py
version_file = Path(__file__).parent / "agroghg" / "_version.py"
VERSION = re.search(
    r"^__version__ = [\"']([^\"']+)[\"']", version_file.read_text(encoding="utf-8"), re.M
).group(1)

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")
else:
    long_description = "AgroGHG - Agricultural GHG emissions engine"

setup(
    name="agroghg",
    version=VERSION,
    description="Deterministic agricultural GHG emissions engine (GHG Protocol Brasil)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    python_requires=">=3.9",
    packages=find_packages(include=["agroghg", "agroghg.*"]),
    package_data={
        "agroghg": ["data/*.yaml"],
    },
    include_package_data=True,
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "SQLAlchemy>=2.0",
        "typer>=0.9",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "agroghg=agroghg.cli.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
    ],
)
