#!/usr/bin/env python3
"""
Setup script for duckflight - DuckDB statements exposed as Arrow record batches.
"""

from pathlib import Path

from setuptools import setup, find_packages

here = Path(__file__).parent
readme = here / "README.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

setup(
    name="duckflight",
    version="0.1.0",
    description="DuckDB statement bridge producing zero-copy Arrow record batches",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="Apache-2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    zip_safe=False,

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],

    python_requires=">=3.9",

    install_requires=[
        "duckdb>=1.5.0",
        "pyarrow>=14.0.0",
        "rich>=12.0.0",
        "typer>=0.7.0",
    ],

    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-mock>=3.12.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.12.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },

    entry_points={
        "console_scripts": [
            "duckflight = duckflight.cli:main",
        ],
    },
)
