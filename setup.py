#!/bin/python3
"""
Usage:
    python setup.py sdist
    python setup.py bdist_wheel
"""

import setuptools

_NAME = 'batchloader'

setuptools.setup(
    name=_NAME,
    version='0.1.0',
    description='Batched and cached loading of keys for asyncio',
    package_dir={'': 'src'},
    packages=setuptools.find_packages('src'),
    python_requires='>=3.12',
    install_requires=['loguru'],
    extras_require={'test': ['pytest', 'pytest-asyncio']},
)
