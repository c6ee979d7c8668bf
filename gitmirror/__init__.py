"""GitHub push webhook receiver that keeps local git mirrors in sync."""

__version__ = "0.1.0"
