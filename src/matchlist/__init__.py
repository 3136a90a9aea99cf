"""matchlist — persisted rule lists for classifying network connections."""

__version__ = "0.1.0"
