from setuptools import setup, find_packages

setup(
    name="codeprep-api",
    version="0.1.0",
    packages=find_packages(include=["src", "src.*"]),
    package_data={"src.codeprep.db": ["seed/problems/*.json"]},
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg",
        "pydantic>=2",
        "pydantic-settings",
        "python-dotenv",
        "email-validator",
        "python-jose[cryptography]",
        "passlib[bcrypt]",
        "bcrypt<5",
        "python-multipart",
        "pyyaml",
        "httpx",
        "redis>=5.0.1",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "aiosqlite",
            "fakeredis",
        ],
    },
)
