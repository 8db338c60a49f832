[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sparselu"
version = "0.1.0"
description = "Sparse LU building blocks: compressed matrices, MC64 matching and scaling, symbolic factorization and level scheduling"
requires-python = ">=3.10"
dependencies = []
keywords = ["sparse", "lu", "factorization", "mc64", "symbolic", "linear-algebra"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sparselu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
