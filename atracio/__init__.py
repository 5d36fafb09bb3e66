"""PCM I/O, filter banks, transient and gain processing, and RealMedia output for ATRAC-style codecs."""

__version__ = "0.1.0"