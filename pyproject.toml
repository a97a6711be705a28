[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goka"
version = "0.1.0"
description = "Building blocks for stateful stream processing: group graphs, codecs, callback contexts, emitters and copartitioned balancing."
requires-python = ">=3.10"
dependencies = []
keywords = ["stream-processing", "kafka", "consumer-group", "codec", "emitter", "rebalance"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["goka"]

[tool.pytest.ini_options]
addopts = "-ra"
