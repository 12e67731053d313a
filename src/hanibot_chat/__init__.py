"""Small conversational message service with a keyword reply pipeline."""

__version__ = "0.1.0"
