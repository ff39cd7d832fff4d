#!/usr/bin/env python3
"""Setup script for acc-lintfix."""

from setuptools import setup

with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="acc-lintfix",
    version="0.1.0",
    description="Normalize lint output with opencode and apply AI-powered fixes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=["lintfix"],
    python_requires=">=3.9",
    install_requires=[
        "PyYAML>=6.0",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "acc=lintfix.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords="lint opencode ai fix",
)
