"""
Core pipeline: link resolution and sequential downloading.

The `QueueBuilder` turns input lines into a frozen `DownloadQueue`, expanding
collections through the `CollectionExpander`. The `DownloadDriver` then hands
each item to the configured sink, strictly one at a time.
"""
