"""Setup script for the worker supervisor."""

from setuptools import setup, find_packages

setup(
    name="worker-supervisor",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["worker_supervisor_main"],
    install_requires=[
        "psutil>=5.9.0",
        "pyyaml>=6.0.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.9",
)
