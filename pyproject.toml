[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "casedesk"
version = "0.1.0"
description = "Case, evidence and crime-report management with role- and clearance-based access control"
requires-python = ">=3.10"
keywords = [
    "case-management",
    "evidence",
    "crime-reports",
    "rbac",
    "clearance",
    "audit-log",
    "jwt",
    "pdf",
]
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
    "Topic :: Office/Business",
]
dependencies = [
    "bcrypt",
    "pyjwt",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["casedesk"]

[tool.hatch.build.targets.sdist]
include = [
    "casedesk",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
