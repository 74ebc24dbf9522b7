"""Decorators and expanders for bit-packed records, builders, debug output, sequences and sortedness."""

__version__ = "0.1.0"

__all__ = ["bitfield", "builder", "custom_debug", "seq", "sorted", "specifiers"]