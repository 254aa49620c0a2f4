"""Job search tracker: pipeline storage, provider search, careers-page
extraction and skill-based match scoring."""

__version__ = "1.0.0"
