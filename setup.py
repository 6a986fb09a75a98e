"""
Setup script for PIP Assist CLI tool.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
long_description = (
    readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""
)

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    with open(requirements_path, "r", encoding="utf-8") as f:
        requirements = [
            line.strip() for line in f if line.strip() and not line.startswith("#")
        ]

setup(
    name="pipassist",
    version="0.1.0",
    author="PIP Assist Development Team",
    author_email="pipassist@example.com",
    description="AI-assisted questionnaire wizard for UK benefit forms",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"pipassist": ["content/*.yaml"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Natural Language :: English",
        "Natural Language :: Persian",
        "Natural Language :: Ukrainian",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={"test": ["pytest>=7.0"]},
    entry_points={
        "console_scripts": [
            "pipassist=pipassist.cli.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
