from setuptools import find_packages, setup

name = "pauli-vqls"
version = "0.1.0"
description = (
    "Variational quantum linear solver for operators written "
    "as weighted sums of Pauli strings."
)

with open("README.md") as f:
    long_description = f.read()

with open("requirements.txt") as f:
    install_requires = f.read()

with open("requirements-dev.txt") as f:
    tests_require = f.read()

setup(
    name=name,
    version=version,
    description=description,
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=install_requires,
    extras_require={"test": tests_require},
    packages=find_packages(exclude=["test", "test.*", "docs", "docs.*"]),
    python_requires=">=3.9",
    include_package_data=True,
)
