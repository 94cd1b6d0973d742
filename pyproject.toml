[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "anicalc"
version = "1.34"
description = "Fast alignment-free computation of whole-genome Average Nucleotide Identity (ANI)."
requires-python = ">=3.10"
dependencies = [
    "sortedcontainers",
]
keywords = [
    "bioinformatics",
    "genomics",
    "ani",
    "average nucleotide identity",
    "minimizers",
    "mash distance",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
anicalc = "anicalc.app:main"

[tool.hatch.build.targets.wheel]
packages = ["anicalc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
