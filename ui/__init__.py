#!/usr/bin/env python3
"""
UI module for Bucket Shelf
Contains all user interface components
"""

from .connection_widget import ConnectionWidget
from .section_list_widget import SectionListWidget

__all__ = [
    'ConnectionWidget',
    'SectionListWidget'
]
