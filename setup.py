"""Setup script for vaultbridge."""
from setuptools import setup, find_packages

setup(
    name="vaultbridge",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["cli"],
    install_requires=[
        "boto3",
        "botocore",
        "python-dotenv",
        "pydantic>=2",
        "pyyaml",
        "tenacity",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["vaultbridge=cli:main"],
    },
    python_requires=">=3.10",
)
