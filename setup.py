"""
Masked Series-System Reliability - Setup Configuration
======================================================

Installation of the masked-data estimator.

Usage:
------
pip install -e .              # Estimator only
pip install -e .[test]        # With the test runner extras
pip install -e .[dev]         # With formatters and type checking

Author: Reliability Analytics Team
Date: October 19, 2026
"""

from setuptools import setup, find_packages
from pathlib import Path

HERE = Path(__file__).parent


def _read_requirements(name: str):
    path = HERE / name
    if not path.exists():
        return []
    lines = (line.split("#", 1)[0].strip() for line in path.read_text(encoding="utf-8").splitlines())
    return [line for line in lines if line]


readme = HERE / "README.md"

test_requirements = ["pytest>=7.2.0", "pytest-cov>=4.0.0"]

setup(
    name="masked-series-mle",
    version="1.0.0",
    author="Reliability Analytics Team",
    description="Maximum-likelihood estimation for series systems with masked failure data",
    long_description=readme.read_text(encoding="utf-8") if readme.exists() else "",
    long_description_content_type="text/markdown",
    license="MIT",

    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={"masked_series": ["config/*.yaml"]},
    zip_safe=False,

    python_requires=">=3.10",
    install_requires=_read_requirements("requirements.txt"),
    extras_require={
        "test": test_requirements,
        "dev": test_requirements + ["black>=23.0.0", "flake8>=6.0.0", "mypy>=1.0.0"],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
    keywords=["reliability", "series system", "masked data", "censoring", "maximum likelihood"],
)
