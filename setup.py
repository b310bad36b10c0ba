#!/usr/bin/env python3

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    """Read README.md for long description."""
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    try:
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        return "Claude Battery - 5-hour quota gauge for Claude Code usage"

__version__ = "1.0.0"

setup(
    name="claude-battery",
    version=__version__,
    description="Battery-style gauge of Claude Code usage against the rolling 5-hour quota window",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src", exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Monitoring",
        "Topic :: Utilities",
    ],
    keywords=[
        "claude", "ai", "token", "usage", "quota", "battery", "monitor",
        "claude-code", "anthropic", "cli"
    ],
    python_requires=">=3.9",
    install_requires=[
        "pytz>=2021.1",
        "rich>=13.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.7",
        "requests>=2.28",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "black>=21.0",
            "flake8>=3.8",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "claude-battery=claude_battery.cli.main:main",
            "cbattery=claude_battery.cli.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    license="MIT",
    platforms=["any"],
)
