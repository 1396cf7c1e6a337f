from setuptools import setup, find_packages

# Use find_packages to automatically discover all packages
packages = find_packages(include=["dynconf", "dynconf.*"])

setup(
    name="dynconf",
    version="0.1.0",
    description="Sequential sampling models of decision confidence: "
    "densities, predictions, simulation and fitting",
    packages=packages,
    python_requires=">=3.10",
    install_requires=[
        "numpy>=2.0",
        "pandas",
        "scipy>=1.15",
        "tqdm",
        "pyyaml",
        "typer",
        "psutil",
        "pathos",
        "multiprocess",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "dynconf=dynconf.cli.main:app",
        ],
    },
)
