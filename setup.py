#!/usr/bin/env python3

import os
from setuptools import setup, find_namespace_packages


here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md')) as f:
    README = f.read()


if __name__ == "__main__":
    setup(
        name = 'kconnect-api',
        version = '0.1.0',
        description = 'Discover Kubernetes clusters and authenticate against identity backends using pluggable providers.',
        long_description = README,
        long_description_content_type = 'text/markdown',
        classifiers = [
            "Programming Language :: Python",
        ],
        keywords = 'kubernetes cluster discovery authentication aad eks',
        packages = find_namespace_packages(include = ['kconnect.*']),
        include_package_data = True,
        zip_safe = False,
        python_requires = '>=3.10',
        install_requires = [
            'django-flexi-settings',
            'httpx',
            'pydantic>=2',
            'python-dateutil',
            'pyyaml',
            'boto3',
            'botocore',
        ],
        extras_require = {
            'test': [
                'pytest',
                'pytest-asyncio',
            ],
        },
        entry_points = {
            # Entrypoint defining discovery plugins available in the core package
            'kconnect.api.discovery': [
                'eks = kconnect.api.discovery.eks:registration',
            ],
            # Entrypoint defining identity plugins available in the core package
            'kconnect.api.identity': [
                'aad = kconnect.api.identity.aad:registration',
            ]
        }
    )
