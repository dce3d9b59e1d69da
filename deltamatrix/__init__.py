"""Motion delta matrix: muscle-score aggregation and delta-rule resolution."""
__version__ = "0.1.0"
