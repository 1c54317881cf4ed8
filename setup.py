#!/usr/bin/env python3
import os
import sys

from setuptools import setup


def main():
    """The main entry point."""
    if sys.version_info[:2] < (3, 8):
        sys.exit("dotthz currently requires Python 3.8+")
    with open(os.path.join(os.path.dirname(__file__), "README.md"), "r") as f:
        readme = f.read()
    skw = dict(
        name="dotthz",
        description="Read and write dotThz (HDF5) measurement files",
        long_description=readme,
        long_description_content_type="text/markdown",
        license="MIT",
        version="0.2.11",
        author="dotThz contributors",
        url="https://github.com/dotTHzTAG",
        platforms="Cross Platform",
        classifiers=["Programming Language :: Python :: 3"],
        packages=["dotthz"],
        package_dir={"dotthz": "dotthz"},
        zip_safe=True,
        install_requires=["h5py >= 3.0", "numpy>=1.16"],
        extras_require={"tests": ["pytest>=3.5", "pytest-black", "pytest-cov"]},
    )
    setup(**skw)


if __name__ == "__main__":
    main()
