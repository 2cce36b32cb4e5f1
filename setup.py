"""
Setup script for feynman-tutor.

FeynmanMath is a terminal tutor for competition mathematics. It serves
two roles:

1. Student Companion - AI-generated problems with Socratic feedback,
   a mistake notebook and progression badges
2. Coach Console - Roster import, password resets and per-student
   weakness analysis

The 'feynman' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="feynman-tutor",
    version="1.0.0",
    description="Terminal-based Feynman-method math tutor with coach analytics",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="FeynmanMath",
    packages=find_packages(include=["feynman", "feynman.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # AI
        "google-generativeai>=0.5.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "feynman=feynman.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="math tutoring feynman cli education gemini",
)
