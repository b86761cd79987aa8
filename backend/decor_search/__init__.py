"""decor-search: aggregated product search across home and decor marketplaces."""

__version__ = "0.1.0"
