from setuptools import setup, find_packages

setup(
    name="riceops-console",
    version="0.1.0",
    description="RiceOps console - entity stores, form wizards and action gating for the back office",
    author="Your Name",
    packages=find_packages(include=["riceops", "riceops.*"]),
    include_package_data=True,
    install_requires=[
        # Core data modeling and validation
        "pydantic>=2.0.0",

        # Async HTTP client (back-office API)
        "httpx>=0.25.0",

        # Environment variables
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.11",
    package_dir={"": "."},
)
