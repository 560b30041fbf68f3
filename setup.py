"""Package metadata and console entry point for postrev."""

from setuptools import find_packages, setup

setup(
    name="postrev",
    version="0.1.0",
    description="Versioned post store for Markdown + front matter blogs",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "click>=8.1",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": ["postrev=postrev.cli:cli"],
    },
)
