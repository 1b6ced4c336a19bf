"""
deploysync — Mirror, package, and relocate deployment artifacts.
"""

__version__ = "0.1.0"
