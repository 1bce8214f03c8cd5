[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cloakkit"
version = "0.1.0"
description = "Function discovery from PDB7 program databases, with logging, timing and value-parsing helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["pdb", "msf", "dbi", "pe", "debug-symbols", "reverse-engineering"]
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
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cloakkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
