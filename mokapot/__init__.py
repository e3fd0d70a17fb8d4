"""Data model for JVM bytecode: program counters, constants, constant pools, instructions and method bodies."""

__version__ = "0.1.0"