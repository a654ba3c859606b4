"""Setup file for sruserver package."""

import os
import inspect

from setuptools import setup, find_packages

# Inspect to find current path
setuppath = inspect.getfile(inspect.currentframe())
setupdir = os.path.dirname(setuppath)

# Basic information
_name = 'sruserver'
_description = ('SRU (Search/Retrieve via URL) server request handling and '
                'diagnostics')
# Discover version number from file
with open(os.path.join(setupdir, 'VERSION.txt'), 'r') as vfh:
    _version = vfh.read().strip()

# More detailed description from README
try:
    fh = open(os.path.join(setupdir, 'README.rst'), 'r')
except IOError:
    _long_description = ''
else:
    _long_description = fh.read()
    fh.close()

# Requirements
with open(os.path.join(setupdir, 'requirements.txt'), 'r') as fh:
    _install_requires = [line.strip() for line in fh
                         if line.strip() and not line.startswith('#')]
_tests_require = ['pytest']


setup(
    name=_name,
    version=_version,
    packages=find_packages(include=[_name, _name + '.*']),
    include_package_data=True,
    exclude_package_data={'': ['README.*', '.gitignore']},
    python_requires='>=3.6',
    tests_require=_tests_require,
    install_requires=_install_requires,
    extras_require={
        'tests': _tests_require
    },
    test_suite="sruserver.test.testAll.suite",
    keywords="sru srw cql search retrieval diagnostics xml",
    description=_description,
    long_description=_long_description,
    license="BSD",
    classifiers=[
        "Intended Audience :: Developers",
        "Intended Audience :: Information Technology",
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
        "Topic :: Internet :: Z39.50",
        "Topic :: Text Processing :: Markup :: XML"
    ]
)
