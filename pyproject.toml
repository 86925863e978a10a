[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rack-director"
version = "0.1.0"
description = "Network boot director: serves iPXE boot loaders over TFTP and per-device iPXE scripts over HTTP"
requires-python = ">=3.10"
keywords = ["pxe", "ipxe", "tftp", "netboot", "provisioning", "datacenter"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Boot",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "starlette",
    "uvicorn",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "httpx",
]

[project.scripts]
rack-director = "rack_director.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rack_director"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
