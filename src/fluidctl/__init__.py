"""fluidctl: command line tool for managing Fluidstack infrastructure."""

__version__ = "0.1.0"
