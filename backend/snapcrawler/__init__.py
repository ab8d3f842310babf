"""snapcrawler: short-form clip pipeline orchestration."""

__version__ = "0.1.0"
