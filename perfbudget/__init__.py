"""Performance budget engine — aggregates frontend timing signals into budget reports."""

__version__ = "0.1.0"
