"""Client-side favorites synchronizer for the maid marketplace apps."""

__version__ = "0.1.0"
