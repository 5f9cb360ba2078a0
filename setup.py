#!/usr/bin/env python3
"""
Setup script for autoshrink - automatic in-place image compression for vaults

This file enables installation via pip and provides package metadata.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read the README file for long description
README_PATH = Path(__file__).parent / "README.md"
long_description = README_PATH.read_text(encoding="utf-8") if README_PATH.exists() else ""

# Read requirements
REQUIREMENTS_PATH = Path(__file__).parent / "requirements.txt"
requirements = []
if REQUIREMENTS_PATH.exists():
    requirements = [
        line.strip()
        for line in REQUIREMENTS_PATH.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="autoshrink",
    version="0.1.0",
    author="autoshrink contributors",
    author_email="",
    description="Compress oversized PNG and JPEG files in place as soon as they are added to a vault",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: System :: Filesystems",
        "Topic :: System :: Monitoring",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black",
            "coverage",
        ],
    },
    entry_points={
        "console_scripts": [
            "autoshrink=main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="image compression watcher vault jpeg png optimization",
)
