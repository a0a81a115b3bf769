[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pqvault"
version = "2.1.0"
description = "Secrets vault core: secret models, provider detection, SSRF-safe API proxy, search, .env generation and health reports"
requires-python = ">=3.10"
dependencies = [
    "httpx",
]
keywords = ["secrets", "vault", "api-keys", "proxy", "env", "ssrf", "health"]
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
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[tool.hatch.build.targets.wheel]
packages = ["pqvault"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
