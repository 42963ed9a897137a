from setuptools import setup, find_packages
import re

# Read version from gigtax/__init__.py
with open('gigtax/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='gigtax',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'gigtax': ['tax-rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'gig-tax=gigtax.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Marginal tax set-aside estimates for gig and self-employment income.',
    python_requires='>=3.10',
)
