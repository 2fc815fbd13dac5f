from setuptools import setup, find_packages

setup(
    name="divquant",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.0",
        "tenacity>=8.2.0",
        "pydantic>=2.0.0",
        "pandas>=2.2.0",
        "numpy>=1.26.3",
        "sqlalchemy>=2.0.25",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "divq=cli.main:main",
        ],
    },
    author="DivQuant",
    author_email="your.email@example.com",
    description="Pairwise correlation analysis and diversification engine for stock portfolios",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
)
