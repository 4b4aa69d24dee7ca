"""
Setup configuration for offerlens package.
"""

from setuptools import setup, find_packages

setup(
    name="offerlens",
    version="0.1.0",
    description="Marketing page scraping, persuasion-element extraction and quality scoring",
    packages=find_packages(include=["offerlens", "offerlens.*"]),
    python_requires=">=3.9",
    install_requires=[
        "firecrawl-py>=4.0",
        "apify-client>=1.7",
        "openai>=1.30",
        "httpx>=0.27",
        "tenacity>=8.2",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "click>=8.1",
        "logfire>=0.50",
        "beautifulsoup4>=4.12",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "offerlens=offerlens.cli.main:cli",
        ],
    },
)
