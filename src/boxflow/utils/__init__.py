"""
Utilities for all kinds of needs
"""

from boxflow.utils.func import *
