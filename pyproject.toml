[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "traffichub"
version = "0.1.0"
description = "Reassemble captured HTTP/2 traffic into frames, decode HPACK headers and gzip bodies, and normalise socket address data."
requires-python = ">=3.10"
dependencies = []
keywords = ["http2", "hpack", "gzip", "traffic", "monitoring", "reassembly"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["traffichub"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
