from setuptools import setup, find_packages

setup(
    name='instant-json',
    version='0.1.0',
    py_modules=['ij'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'lark>=1.1',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'ij = ij:main',
        ],
    },
)
