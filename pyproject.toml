[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toykernel"
version = "0.1.0"
description = "Small operating-system building blocks in pure Python: memory pool, scheduler, process table, thread pool, device, IDT, ELF loading and a console"
requires-python = ">=3.11"
dependencies = []
keywords = [
    "kernel",
    "operating-system",
    "scheduler",
    "memory-allocator",
    "thread-pool",
    "idt",
    "elf",
    "education",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
toykernel-timer = "toykernel.timer:main"
toykernel-system = "toykernel.system:main"
toykernel-scheduler = "toykernel.scheduler:main"
toykernel-process-data = "toykernel.data_processor:main"
toykernel-interrupts = "toykernel.interrupts:main"
toykernel-startup = "toykernel.startup:main"
toykernel-console = "toykernel.console:main"

[tool.hatch.build.targets.wheel]
packages = ["toykernel"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
