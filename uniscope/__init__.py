"""uniscope: university web content discovery, extraction and classification."""

__version__ = "0.1.0"
