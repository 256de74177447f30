[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tradewire"
version = "0.1.0"
description = "Wire-level building blocks for trading protocols: FIX sessions and templates, market-data framing and fast number formatting"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "trading",
    "fix",
    "itch",
    "soupbintcp",
    "market-data",
    "order-entry",
    "protocol",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tradewire-config = "tradewire.config_tool:main"

[tool.hatch.build.targets.wheel]
packages = ["tradewire"]

[tool.hatch.build.targets.sdist]
include = ["tradewire", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
