#!/usr/bin/env python3
"""
Setup script for HostelPay

Install with:
    pip install -e .

Or with test tooling:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "redis>=5.0.1",
    "slowapi>=0.1.9",
]

setup(
    name="hostelpay",
    version="1.0.0",
    description="HostelPay - hostel fee collection and expense tracking service",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="HostelPay Team",
    license="MIT",
    package_dir={"": "backend"},
    packages=find_packages(where="backend", exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.26.0",
            "faker>=22.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "hostelpay-server=hostelpay.main:run",
            "hostelpay-monthly-reset=hostelpay.scripts.monthly_reset:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: FastAPI",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="hostel fees upi expenses fastapi",
)
