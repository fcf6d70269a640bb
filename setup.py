"""Setup configuration for the agro-marketplace project."""

from setuptools import setup, find_packages

setup(
    name="agro-marketplace",
    version="1.0.0",
    description="Farmer-to-dealer agro marketplace backend with FastAPI, SQLAlchemy and Kafka order events",
    author="Your Name",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.109.0",
        "uvicorn>=0.27.0",
        "confluent-kafka>=2.3.0",
        "sqlalchemy>=2.0.23",
        "psycopg2-binary>=2.9.9",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "PyJWT>=2.8.0",
        "requests>=2.31.0",
        "python-multipart>=0.0.6",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
)
