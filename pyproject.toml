[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metrix"
version = "0.1.0"
description = "A small in-memory metrics server and a reporting agent over a plain HTTP path API"
requires-python = ">=3.10"
keywords = ["metrics", "monitoring", "gauge", "counter", "agent", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "werkzeug>=2.3",
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
metrix-agent = "metrix.agent_cli:main"
metrix-server = "metrix.server_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["metrix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
