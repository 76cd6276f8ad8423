"""
Setup configuration for the Cyclone Panel Attrition Analysis

This setup file configures the package installation and dependencies
for the pre/post-cyclone survey panel pipeline.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
if requirements_path.exists():
    with open(requirements_path, 'r') as f:
        install_requires = [
            line.strip()
            for line in f.readlines()
            if line.strip() and not line.startswith('#')
        ]
else:
    install_requires = [
        'pandas>=1.5.0',
        'numpy>=1.24.0',
        'scipy>=1.10.0',
        'matplotlib>=3.6.0',
        'seaborn>=0.12.0',
        'pyyaml>=6.0',
    ]

setup(
    name="cyclone-panel-attrition",
    version="1.0.0",
    description="Attrition analysis of a pre/post-cyclone household survey panel",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Survey Analytics Team",

    # Package configuration
    packages=find_packages(include=['config', 'scripts']),
    py_modules=[
        'panel_errors',
        'panel_loader',
        'panel_cleaning',
        'panel_flags',
        'panel_join',
        'panel_bucketing',
        'panel_stats',
        'panel_pipeline',
        'panel_reporting',
        'panel_generator',
        'run_complete_pipeline',
    ],
    include_package_data=True,
    package_data={
        'config': ['*.yaml', '*.yml'],
    },

    # Dependencies
    install_requires=install_requires,

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
        ],
        'notebook': [
            'jupyter>=1.0.0',
            'notebook>=6.5.0',
            'ipykernel>=6.25.0',
        ],
    },

    # Python version requirement
    python_requires=">=3.8",

    # Classification
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],

    # Keywords
    keywords="survey panel attrition cyclone stata chi-square",

    # Entry points for command-line scripts
    entry_points={
        'console_scripts': [
            'cyclone-panel-pipeline=run_complete_pipeline:main',
        ],
    },
)
