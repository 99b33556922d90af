"""
Setup script for prep-plan-sync.

prep-plan-sync turns the AI-generated `plan_content` of interview
preparation plans into relational practice data:

1. Exercises per subject, with datasets parsed from case study schemas
2. Numbered questions and reference answers
3. A plan-wide set of problem-solving case study questions

The 'prepsync' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="prep-plan-sync",
    version="1.0.0",
    description="Interview preparation plan migration into practice exercises",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "prepsync=prepsync.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="interview-prep migration etl cli",
)
