"""
youtube-dl-web — setuptools build script.

Usage:
    # Development:
    pip install -e .[test]

    # Run:
    python3 main.py --results ~/youtube/ready --workdir ~/youtube/.temp
"""

from setuptools import setup, find_namespace_packages

APP_NAME = "youtube-dl-web"

setup(
    name=APP_NAME,
    version="1.0.0",
    description="Web interface that queues YouTube downloads and serves the results",
    packages=find_namespace_packages(include=["ytdlweb", "ytdlweb.*"]),
    install_requires=[
        "requests>=2.28.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "python-multipart>=0.0.6",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    python_requires=">=3.10",
)
