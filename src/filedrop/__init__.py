"""FileDrop: single-use upload slots with quota and retention."""

__version__ = "0.1.0"
