"""
votebridge - Serial Voting Bridge

HTTP bridge between a polling web app and wireless voting devices
attached to a serial base station.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="votebridge",
    version="1.0.0",
    description="Serial voting device bridge with live yes/no and multiple choice tallies",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="votebridge",
    author_email="",
    license="BSD-3-Clause",

    packages=find_packages(exclude=["tests", "tests.*"]),

    install_requires=[
        "numpy>=1.21.0",
        "pyserial>=3.5",
        "fastapi>=0.100.0",
        "uvicorn>=0.22.0",
        "python-multipart>=0.0.6",
    ],

    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24.0",
        ],
    },

    entry_points={
        "console_scripts": [
            "votebridge=votebridge.server:main",
        ],
    },

    python_requires=">=3.8",

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX",
    ],
)
