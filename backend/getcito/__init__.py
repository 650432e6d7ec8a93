"""
GetCito AI Monitor
Citation, brand mention and competitor analytics for AI answer engines
"""

__version__ = "1.0.0"
