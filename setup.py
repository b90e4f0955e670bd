"""Package configuration for dropboxapi."""

import re

from setuptools import setup, find_packages

# Read version from dropboxapi/__init__.py to avoid duplication
with open("dropboxapi/__init__.py") as f:
    version = re.search(r'__version__\s*=\s*"(.+?)"', f.read()).group(1)

setup(
    name="dropboxapi",
    version=version,
    description="Client library and CLI for the Dropbox v1 REST API",
    author="dropboxapi contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "requests-oauthlib",
        "oauthlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "dropboxapi=dropboxapi.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
    ],
)
