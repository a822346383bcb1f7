#!/usr/bin/env python3
"""
Setup script for Google Tasks MCP Server

Install with:
    pip install -e .            # server
    pip install -e ".[test]"    # server + test dependencies

Then authorize once with ``gtasks-mcp auth`` (or set ACCESS_TOKEN and
REFRESH_TOKEN) and point your MCP client at the ``gtasks-mcp`` command.
"""

from setuptools import setup, find_packages

setup(
    name="gtasks-mcp-server",
    version="1.0.0",
    description="MCP server exposing Google Tasks task lists and tasks as tools and resources",
    packages=find_packages(include=["gtasks_mcp", "gtasks_mcp.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastmcp>=2.13,<3",
        "mcp>=1.9",
        "pydantic>=2.0",
        "python-dotenv>=1.0",
        "google-api-python-client>=2.100",
        "google-auth>=2.20",
        "google-auth-httplib2>=0.2",
        "google-auth-oauthlib>=1.0",
        "httplib2>=0.22",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "gtasks-mcp=gtasks_mcp.server:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
