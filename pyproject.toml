[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cryptcrawl"
version = "0.1.0"
description = "Entity-component game logic and BSP dungeon generation for a grid-based dungeon crawler"
requires-python = ">=3.10"
dependencies = []
keywords = ["roguelike", "dungeon", "ecs", "bsp", "procedural-generation", "game"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cryptcrawl = "cryptcrawl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["cryptcrawl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
