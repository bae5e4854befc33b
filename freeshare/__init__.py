"""
FreeShare

Anonymous file sharing through short numeric share codes.
"""

__version__ = "1.0.0"
