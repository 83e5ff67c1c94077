#!/usr/bin/env python3
"""
Setup script for Patient Reports

Install with:
    pip install -e .

With test dependencies:
    pip install -e ".[test]"
    playwright install chromium
"""

from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "sqlalchemy>=2.0.25",
    "aiosqlite>=0.19.0",
    "python-docx>=1.1.0",
    "playwright>=1.41.0",
    "aiofiles>=23.2.1",
    "PyYAML>=6.0.1",
]

test_requirements = [
    "pytest>=7.4.0",
    "pytest-asyncio>=0.23.0",
    "faker>=22.0.0",
]

setup(
    name="patient-reports",
    version="1.0.0",
    description="Word and PDF summary reports for patient registrations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    package_dir={"": "backend"},
    packages=find_namespace_packages(where="backend", include=["app", "app.*"]),
    package_data={"app.modules.reports": ["classifier_rules.yml"]},
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "postgres": ["asyncpg>=0.29.0"],
        "test": test_requirements,
        "dev": test_requirements + [
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "patient-report=app.scripts.generate_report:main",
        ],
    },
    classifiers=[
        "Environment :: Console",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
