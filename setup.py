################################################################################
# MIT License
#
# Copyright (c) 2023 IBM
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
################################################################################
"""Setup to be able to build grpc_swagger_adapter library.
"""

# Standard
import os

# Third Party
import setuptools

# get version of library
VERSION = os.getenv("COMPONENT_VERSION", "0.0.0")

setuptools.setup(
    name="grpc_swagger_adapter",
    author="IBM",
    version=VERSION,
    license="MIT",
    description="Swagger and REST adapter paths generated from gRPC services",
    python_requires=">=3.8",
    packages=setuptools.find_packages(include=("grpc_swagger_adapter",)),
    install_requires=[
        "alchemy-logging>=1.0.3",
        "PyYAML>=5.4",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "grpc-swagger-adapter=grpc_swagger_adapter.__main__:main",
        ]
    },
)
