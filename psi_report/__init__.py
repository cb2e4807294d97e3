"""Text reports for PageSpeed Insights analyses of many URLs."""

__version__ = "0.1.0"
