"""Small operating-system building blocks: memory pool, scheduling, process records, devices, IDT, ELF loading and a console."""

__version__ = "0.1.0"