"""CloudLaunch data export/import pipeline."""

__version__ = "1.0.0"
