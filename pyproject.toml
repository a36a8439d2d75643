[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "klinebuilder"
version = "0.1.0"
description = "Compute technical indicators for candlestick data stored in Redis and write the results back"
requires-python = ">=3.10"
keywords = ["trading", "candles", "klines", "indicators", "kama", "cci", "atr", "donchian", "ichimoku", "redis", "msgpack"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "redis>=5.0",
    "msgpack>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[project.scripts]
klinebuilder = "klinebuilder.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["klinebuilder"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
