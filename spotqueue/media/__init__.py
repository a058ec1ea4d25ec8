"""
Media Output Layer.

This package is responsible for handing downloaded audio to its destination,
either a file on disk or an external helper program.
"""

from .sinks import FileSink, HelperProcessSink, Sink, create_sink

__all__ = ["FileSink", "HelperProcessSink", "Sink", "create_sink"]
