import setuptools

try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "Package Terraform modules into size-bounded archives"

setuptools.setup(
    name="slugpack",
    version="0.1.0",
    description="Package Terraform modules into size-bounded archives",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src", include=["slugpack", "slugpack.*"]),
    install_requires=[
        "pathspec>=0.10,<1.0",
        "pydantic>=2.0",
        "python-dotenv",
        "python-hcl2>=4.3",
        "rich",
        "typer",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "slugpack=slugpack.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
    ],
    python_requires=">=3.10",
)
