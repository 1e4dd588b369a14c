[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oorun"
version = "0.5.3"
description = "Run commands that assume standard input and output so that they read and write files named on the command line."
requires-python = ">=3.10"
dependencies = []
keywords = ["cli", "utility", "redirection", "pipeline", "subprocess"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
o-o = "oorun.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["oorun"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
