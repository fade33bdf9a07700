[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "miningsvc"
version = "0.1.0"
description = "Mining-user contract event handling: JSON-RPC log polling, one-time codes, secp256k1 and AES-CBC helpers."
requires-python = ">=3.10"
keywords = [
    "json-rpc",
    "event-logs",
    "abi",
    "otp",
    "secp256k1",
    "ecdh",
    "aes-cbc",
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "pyyaml>=6.0",
    "pycryptodome>=3.18",
    "requests>=2.31",
    "sqlalchemy>=2.0",
    "lmdb>=1.4",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[tool.hatch.build.targets.wheel]
packages = ["miningsvc"]

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
