"""
CarbonNet emission-factor resolution and report engine.
"""

__version__ = "1.0.0"
