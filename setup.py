from setuptools import find_packages, setup


setup(
    name="tensorexpr",
    version="0.1.0",
    description="Lazy tensor expressions with eager algebraic simplification",
    author="Relja",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
    ],
    extras_require={
        "dev": [
            "pytest>=7",
        ],
    },
    zip_safe=False,
)
