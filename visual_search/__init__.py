"""Visual Search: cluster article search results into labeled topics."""

__version__ = "0.1.0"
