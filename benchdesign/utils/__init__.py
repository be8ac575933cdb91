"""
Small utilities shared by the design and build layers.
"""
from .logging import get_logger, set_level, get_level
