"""
Setup configuration for adappeal package.
"""

from pathlib import Path

from setuptools import setup, find_packages


def _requirements():
    path = Path(__file__).parent / "requirements.txt"
    return [
        line.strip()
        for line in path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]


setup(
    name="adappeal",
    version="0.1.0",
    description="Google Ads policy auto-appeal engine",
    packages=find_packages(include=["adappeal", "adappeal.*"]),
    python_requires=">=3.10",
    install_requires=_requirements(),
    extras_require={
        "test": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "adappeal=adappeal.cli.main:cli",
        ],
    },
)
