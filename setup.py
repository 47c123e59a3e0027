# setup.py

from setuptools import setup, find_packages

setup(
    name='speaker-spin',
    version='1.0.0',
    description='Loudspeaker spinorama parsing, CEA2034 curves and preference scores',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'scipy',
        'matplotlib',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'speaker-spin=speaker_spin.cli.__main__:main',
        ],
    },
)
