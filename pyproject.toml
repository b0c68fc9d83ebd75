[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smallchat"
version = "0.1.0"
description = "A minimal TCP chat server and raw-terminal chat client"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "select", "terminal", "server"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
smallchat-server = "smallchat.server:main"
smallchat-client = "smallchat.client:main"

[tool.hatch.build.targets.wheel]
packages = ["smallchat"]

[tool.pytest.ini_options]
addopts = "-ra"
