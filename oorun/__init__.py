"""Run commands with their standard streams redirected to named files."""

__version__ = "0.5.3"
__all__ = ["args", "cli", "fileio"]