"""Virtual Navigator (.vnd) project reverse engineering toolkit."""

__version__ = "0.1.0"
