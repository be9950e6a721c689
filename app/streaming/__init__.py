"""
Range streaming of stored videos.
Parsing (range_parser) and serving (responder) are separate; the responder
assumes the entitlement check has already passed.
"""
from app.streaming.range_parser import (
    FullRequest,
    Malformed,
    MultiRange,
    SingleRange,
    parse_range_header,
)
from app.streaming.responder import RangeStreamer, ServeWindow, iter_window, plan_window

__all__ = [
    "FullRequest",
    "Malformed",
    "MultiRange",
    "SingleRange",
    "RangeStreamer",
    "ServeWindow",
    "iter_window",
    "parse_range_header",
    "plan_window",
]
