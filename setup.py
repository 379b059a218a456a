# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
A setuptools based setup module.
See:
https://packaging.python.org/guides/distributing-packages-using-setuptools/
https://github.com/pypa/sampleproject
"""

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
import os

here = os.path.abspath(os.path.dirname(__file__))

# the package cannot be imported before its dependencies are installed, read the version file instead
version_vars = dict()
with open(os.path.join(here, 'src', 'NodalFlowEngine', '__version__.py'), 'r') as f:
    exec(f.read(), version_vars)

long_description = """# NodalFlowEngine

Power flow engine for transmission networks.

The nodal admittance matrices are kept up to date incrementally as branches and shunts change,
and the network can be solved with Newton-Raphson, fast decoupled (XB and BX), Gauss-Seidel
or the DC linear approximation, with enforcement of the generators' reactive power limits.

## Installation

pip install NodalFlowEngine
"""

description = 'NodalFlowEngine is a power flow solver with incrementally maintained admittance matrices'

pkgs_to_exclude = ['docs', 'research', 'tests', 'tutorials']

packages = find_packages(where='src', exclude=pkgs_to_exclude)

dependencies = ['setuptools>=41.0.1',
                'wheel>=0.37.2',
                "numpy>=1.22,<2.0",  # nptyping does not support numpy 2
                "scipy>=1.0.0",
                "pandas>=2.2.3",
                "numba>=0.60",  # to compile routines natively
                "nptyping>=2.5.0",
                ]

extras_require = {
    'test': ["pytest>=7.2"]
}
# Arguments marked as "Required" below must be included for upload to PyPI.
# Fields marked as "Optional" may be commented out.

setup(
    name='NodalFlowEngine',  # Required
    version=version_vars['__NodalFlowEngine_VERSION__'],  # Required
    license='MPL2',
    description=description,  # Optional
    long_description=long_description,  # Optional
    long_description_content_type='text/markdown',  # Optional (see note above)
    classifiers=[
        'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',
        'Programming Language :: Python :: 3.8',
    ],
    keywords='power systems power flow',  # Optional
    packages=packages,  # Required
    package_dir={'': 'src'},
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=dependencies,
    extras_require=extras_require,
)
