"""External process supervision."""

from protobench.runners.process import EventSink, ProcessRunner

__all__ = ["EventSink", "ProcessRunner"]
