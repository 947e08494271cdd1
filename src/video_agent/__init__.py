"""Desktop launcher core for the video analysis app: backend supervision and span location."""

__version__ = "0.1.0"
