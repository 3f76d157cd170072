[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskconsole"
version = "0.1.0"
description = "Building blocks for collecting and recording instrumentation data about async tasks, resources and operations"
requires-python = ">=3.10"
dependencies = []
keywords = ["diagnostics", "instrumentation", "tracing", "async", "tasks", "console"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["taskconsole"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
