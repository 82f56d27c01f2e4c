from setuptools import setup, find_packages

setup(
    name="zkclaim_package",
    version="0.1.0",
    description="A package to build and solve the claim circuit of a private Bitcoin deposit bridge",
    url="https://github.com/yourusername/zkclaim_package",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "tx-engine",
        "zksnake",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
)
