"""setuptools setup for Sandoro.

Install for development:
    pip install -e ".[test]"
    pytest
"""

from setuptools import find_packages, setup

setup(
    name="sandoro",
    version="0.1.0",
    description="Pomodoro and flowtime focus timer",
    packages=find_packages(include=["sandoro", "sandoro.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "gui_scripts": ["sandoro=sandoro.__main__:main"],
    },
)
