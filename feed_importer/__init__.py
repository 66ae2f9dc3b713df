"""Import podcast RSS feeds into a show: download, re-encode to MP3, upload, record."""

__version__ = "0.1.0"
