[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slimlog"
version = "0.1.0"
description = "A lightweight structured logger that writes one JSON object per event."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "json", "structured-logging", "syslog", "sampling"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slimlog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
