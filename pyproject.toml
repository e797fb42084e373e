[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moti"
version = "0.1.0"
description = "Protobuf dependency manager and protoc code generation driver"
requires-python = ">=3.10"
keywords = ["protobuf", "protoc", "dependencies", "code-generation", "grpc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Topic :: Software Development :: Code Generators",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
moti = "moti.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["moti"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
