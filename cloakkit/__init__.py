"""Function discovery from PDB7 program databases, with logging, timing and value-parsing helpers."""

__version__ = "0.1.0"