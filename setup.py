from setuptools import setup, find_packages

setup(
    name="medical_pattern_analytics",
    version="1.0.0",
    packages=find_packages(include=["pattern_analytics", "pattern_analytics.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "python-dotenv",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
    ],
    extras_require={
        "postgres": ["asyncpg"],
        "test": ["pytest", "anyio", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "pattern-analytics=pattern_analytics.main:run",
        ],
    },
)
