[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "robot_behaviors"
version = "0.1.0"
description = "Reactive mobile-robot behaviours: person and ball following, bumper and odometry control, detection projection and obstacle vectors"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "scipy",
]
keywords = [
    "robotics",
    "mobile robot",
    "pid",
    "person following",
    "obstacle detection",
    "potential fields",
    "transforms",
    "pinhole camera",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["robot_behaviors"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 99
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
