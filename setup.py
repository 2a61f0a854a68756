from setuptools import find_packages, setup

setup(
    name='shell-rargs',
    version='0.3.0',
    description='xargs with pattern matching and parallel jobs',
    python_requires='>=3.8',
    packages=find_packages(exclude=[
        'rargs.test',
        'rargs.test.*',
    ]),
    install_requires=[
        'chardet',
        'python-dateutil',
        'simplejson',
    ],
    extras_require={
        'test': [
            'mock',
            'pexpect',
            'pytest',
        ],
    },
    entry_points={
        "console_scripts": [
            "rargs = rargs.main:main",
        ],
    }
)
