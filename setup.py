#package configuration file
#!/usr/bin/env python3
from setuptools import setup
setup(
    name='gitstore',
    version='1.0',
    packages=['gitstore'],
    python_requires='>=3.9',
    install_requires=[
        'pathspec',
        'pyserde',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts':[
            'gitstore=gitstore.cli:main'
        ]
    }
)
