from setuptools import setup, find_packages

setup(
    name="laliga-market-trends",
    version="0.1.0",
    description="LaLiga Fantasy market trend scraper with cross-source player name matching",
    packages=find_packages(include=["market_trends", "market_trends.*"]),
    package_data={"market_trends.data": ["aliases.json"]},
    install_requires=[
        "numpy>=1.22.4",
        "pandas>=1.5.3",
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=4.9.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "market-trends=market_trends.main:main",
        ],
    },
)
