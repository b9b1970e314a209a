[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stackup"
version = "0.1.0"
description = "Workflow building blocks: checksum verification, an allow/block-list HTTP gateway, an expiring cache and remote workflow includes."
requires-python = ">=3.10"
keywords = ["workflow", "checksums", "gateway", "cache", "includes", "devops"]
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
    "Topic :: Software Development",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["stackup"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
