[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metadb"
version = "0.1.0"
description = "Change-event decoding, SQL type mapping and MARC record tabulation for a PostgreSQL analytics database"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "postgresql", "change data capture", "debezium", "marc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["metadb"]

[tool.pytest.ini_options]
addopts = "-ra"
