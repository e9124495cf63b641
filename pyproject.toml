[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "terrawrap"
version = "0.1.0"
description = "Argument handling, version checks and module source bookkeeping for a thin wrapper around Terraform"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "terraform",
    "wrapper",
    "infrastructure-as-code",
    "modules",
    "version-constraints",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["terrawrap"]

[tool.hatch.build.targets.sdist]
include = ["terrawrap", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 120
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
