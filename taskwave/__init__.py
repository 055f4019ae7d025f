"""TaskWave: personal task tracker API."""

__version__ = "1.0.0"
