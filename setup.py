from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = "A compact schema language with a compiler and a validation engine that applies defaults and collects path-qualified errors."

setup(
    name="schema-dsl",
    version="0.1.0",
    description="A compact schema language with a compiler and a validation engine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0",
        "jsonschema>=4.20.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "lark>=1.1.0",
    ],
    entry_points={
        "console_scripts": [
            "sdl=schema_dsl.cli:main",
        ],
    },
    extras_require={
        "dev": [
            "pytest",
            "coverage",
            "hypothesis",
            "parameterized==0.9.0",
        ],
    },
)
