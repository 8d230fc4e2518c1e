#!/usr/bin/env python3
# Copyright 2025 Fake Handshaker Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Fake Handshaker Setup
"""

import os

from setuptools import find_packages, setup

here = os.path.dirname(os.path.abspath(__file__))

# Read the README file
with open(os.path.join(here, "README.md"), encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
with open(os.path.join(here, "requirements.txt"), encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

# Read version
version = "0.1.0"
init_path = os.path.join(here, "handshaker_service", "__init__.py")
if os.path.exists(init_path):
    with open(init_path, encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                version = line.split("=")[1].strip().strip('"').strip("'")
                break

setup(
    name="fake-handshaker",
    version=version,
    author="Fake Handshaker Contributors",
    description="Fake S2A handshaker service for exercising secure channels without a TLS stack",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["handshaker_service", "handshaker_service.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fake-handshaker=handshaker_service.cli:main",
        ],
    },
    zip_safe=False,
    keywords="grpc, s2a, handshaker, tls, testing, fake",
)
