#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="compiler_diagnostics",
    version="0.1.0",
    description="Run SDK compilers and extract structured diagnostics from their output",
    packages=find_packages(include=["compiler_diagnostics", "compiler_diagnostics.*"]),
    python_requires=">=3.11",
    install_requires=[
        "loguru>=0.5.0",
        "pydantic>=2.0",
        "termcolor>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "pytest-mock>=3.0.0",
        ],
        "dev": [
            "pytest>=6.0.0",
            "pytest-mock>=3.0.0",
            "black>=21.5b2",
            "mypy>=0.812",
        ],
    },
    entry_points={
        "console_scripts": [
            "compiler-diagnostics=compiler_diagnostics.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
    ],
)
