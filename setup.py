from setuptools import setup, find_packages

# Core requirements
INSTALL_REQUIRES = [
    "aiohttp>=3.9.1",
    "cachetools>=5.3.2",
    "chardet>=4.0.0",
    "click>=8.0.0",
    "prometheus-client>=0.17.1",
    "pydantic>=2.0.0",
    "python-dotenv>=1.0.0",
    "structlog>=23.2.0",
]

# Development requirements
EXTRAS_REQUIRE = {
    "dev": [
        "pytest>=7.4.3",
        "pytest-cov>=4.1.0",
        "pytest-mock>=3.12.0",
        "pytest-asyncio>=0.23.2",
        "black>=23.11.0",
        "flake8>=6.1.0",
        "mypy>=1.7.1",
        "isort>=5.12.0",
        "types-cachetools>=5.3.0",
    ],
    "test": [
        "pytest>=7.4.3",
        "pytest-cov>=4.1.0",
        "pytest-mock>=3.12.0",
        "pytest-asyncio>=0.23.2",
    ],
}

setup(
    name="feed_translator",
    version="1.0.0",
    description="A caching proxy that serves RSS feeds with machine-translated titles",
    long_description=open("README.md", "r", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "docs*"]),
    package_data={"feed_translator.config": ["feeds.json"]},
    entry_points={"console_scripts": ["feed-translator=feed_translator.cli:cli"]},
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: News/Diary",
    ],
    python_requires=">=3.11",
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
)
