"""
Setup script for the craftd career metrics engine.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_namespace_packages

setup(
    name="craftd-career-metrics",
    version="0.1.0",
    packages=find_namespace_packages(include=["src", "src.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0",
        "pymongo>=4.0",
        "python-dotenv>=1.0",
        "tenacity>=8.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
)
