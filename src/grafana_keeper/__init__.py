"""Keep Grafana data sources and dashboards in sync with JSON files on disk."""

__version__ = "1.0.0"
