"""Random prize draws over categorized participants with CSV import/export."""

__version__ = "0.1.0"
