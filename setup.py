from setuptools import setup, find_packages

setup(
    name="localmods",
    version="0.1.0",
    description="localmods - side-by-side installs of modules from local folders or GitHub repositories",
    author="localmods Team",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer>=0.16.0",
        "rich>=13.7.1",
        "GitPython>=3.1.43",
        "PyYAML>=6.0.2",
        "requests>=2.31.0",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.3.2",
        ],
    },
    entry_points={
        "console_scripts": [
            "localmods=localmods.apps.cli.app:app",
        ],
    },
)
