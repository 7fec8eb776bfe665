[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fgakit"
version = "0.1.0"
description = "Toolkit for fine-grained authorization workflows: models, tuple files, store tests and rate-limited tuple imports"
requires-python = ">=3.10"
keywords = [
    "authorization",
    "fga",
    "relationship-based-access-control",
    "rebac",
    "tuples",
    "access-control",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["fgakit"]

[tool.hatch.build.targets.sdist]
include = ["fgakit", "tests"]

[tool.pytest.ini_options]
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
