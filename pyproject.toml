[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mokapot"
version = "0.1.0"
description = "Data model for JVM bytecode: program counters, constant values, constant pools, raw and resolved instructions, and method bodies."
requires-python = ">=3.10"
dependencies = []
keywords = ["jvm", "bytecode", "class-file", "java", "disassembler", "constant-pool"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["mokapot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
