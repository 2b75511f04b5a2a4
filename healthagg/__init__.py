"""healthagg — composite health-check aggregator."""

__version__ = "0.1.0"
