[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernelsim"
version = "0.1.0"
description = "A toy operating-system simulator: a command shell, paged memory, a round-robin scheduler and a block-based disk partition."
requires-python = ">=3.10"
dependencies = []
keywords = ["operating system", "simulator", "scheduler", "paging", "shell", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kernelsim = "kernelsim.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["kernelsim"]

[tool.pytest.ini_options]
addopts = "-ra"
