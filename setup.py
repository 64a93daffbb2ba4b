# setup.py
from setuptools import setup, find_packages

install_requires = [
    # --- CONFIGURATION ---
    "pydantic>=2.0.0",
    "python-dotenv>=1.0.0",
    "pyyaml>=6.0.0",

    # --- PERSISTENCE ---
    "duckdb>=0.10.0",
]

extras_require = {
    # --- TESTS---
    "test": [
        "pytest",
    ],
}

setup(
    name="storefront-core",
    version="1.0.0",
    description="Storefront client core: reactive state store and action dispatcher",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.11",
)
