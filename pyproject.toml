[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "choma"
version = "0.1.0"
description = "AArch64 instruction encoders and decoders with mask patterns for binary patch finding"
requires-python = ">=3.10"
dependencies = []
keywords = ["arm64", "aarch64", "mach-o", "disassembler", "patchfinder", "instruction-encoding"]
classifiers = [
    "Development Status :: 4 - Beta",
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
packages = ["choma"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
