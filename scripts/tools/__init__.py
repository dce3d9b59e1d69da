"""
Motion Delta Matrix Tools Package

Command-line tools for working with the motion delta matrix outside the API.

Core modules:
- matrix_cli: export, import and inspect the matrix from the shell
"""

__version__ = "1.0.0"
