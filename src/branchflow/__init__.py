# src/branchflow/__init__.py: Package metadata.

__version__ = "0.1.0"
