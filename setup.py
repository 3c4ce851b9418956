from setuptools import setup, find_packages

setup(
    name="imageextract",
    version="0.1.0",
    description="Extract container image references from Kubernetes manifests and Helm charts",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "imageextract=imageextract.CLI.main:main",
        ],
    },
)
