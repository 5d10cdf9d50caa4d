[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sfucore"
version = "0.1.0"
description = "Building blocks of a selective forwarding unit: audio level ranking, RTP sequencing for NACKs, transport-wide congestion control feedback, data channel middleware, sessions and configuration."
requires-python = ">=3.10"
dependencies = []
keywords = ["sfu", "webrtc", "rtp", "rtcp", "twcc", "nack", "conferencing", "simulcast"]
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
    "Topic :: Communications :: Conferencing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sfucore"]

[tool.hatch.build.targets.sdist]
include = ["sfucore", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
