"""
spotqueue: sequential downloader for streaming-service tracks and episodes.
"""

__version__ = "0.3.0"
