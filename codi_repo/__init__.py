"""Cross-repository pull request linking and atomic merge."""

__version__ = "0.1.0"
