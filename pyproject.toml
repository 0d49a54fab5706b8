[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "skyctl"
version = "0.1.0"
description = "Client-side helpers and a small command line for querying a monitoring backend"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["monitoring", "apm", "cli", "tracing", "observability"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
skyctl = "skyctl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["skyctl"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
