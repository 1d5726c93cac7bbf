from setuptools import setup, find_packages

setup(
    name="tetraspore-actions",
    version="0.1.0",
    description="Tetraspore - action script compiler and asset execution engine",
    author="Tetraspore Team",
    packages=find_packages(include=["tetraspore", "tetraspore.*"]),
    include_package_data=True,
    install_requires=[
        # Core data modeling and validation
        "pydantic>=2.0.0",

        # Environment variables
        "python-dotenv>=1.0.0",

        # Dependency graph
        "networkx>=3.0",

        # CLI and rich output
        "typer>=0.9.0",
        "rich>=13.0.0",

        # YAML action scripts
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tetraspore = tetraspore.app.cli:main",
        ],
    },
    python_requires=">=3.11",
    package_dir={"": "."},
)
