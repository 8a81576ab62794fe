"""A toy operating-system simulator with a shell, paged memory, a scheduler and a block disk."""

__version__ = "0.1.0"
__all__ = ["cpu", "disk", "interpreter", "kernel", "memory", "memorymanager", "pcb", "shell"]