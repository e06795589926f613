"""Audit subpackage - per-cycle control law traces"""

from .trace_logger import ServoTraceLogger, read_trace
