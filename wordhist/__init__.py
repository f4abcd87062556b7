"""Distributed word-frequency counting over a pool of worker processes."""

from wordhist.histogram import WordHistogram, HistogramEntry

__all__ = ["WordHistogram", "HistogramEntry"]
