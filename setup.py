"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="hanibot-chat",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "structlog",
        "google-generativeai",
        "prometheus-client",
        "opentelemetry-instrumentation-fastapi",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": ["hanibot-chat=hanibot_chat.__main__:main"],
    },
)
