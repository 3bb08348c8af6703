"""
Taskflow setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="taskflow",
    version="1.0.0",
    description="Taskflow — task workflow state machine, permissions and productivity scoring",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "networkx>=3.2",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
