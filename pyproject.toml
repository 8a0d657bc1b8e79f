[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jsrv"
version = "0.1.0"
description = "A UDP game server that tokenizes JSON datagrams and hands them to a game handler"
requires-python = ">=3.10"
dependencies = []
keywords = ["game server", "udp", "json", "tokenizer", "worker pool"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Internet",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
jsrv = "jsrv.main:main"

[tool.hatch.build.targets.wheel]
packages = ["jsrv"]

[tool.pytest.ini_options]
addopts = "-ra"
