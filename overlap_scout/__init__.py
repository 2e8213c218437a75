# overlap_scout/__init__.py
"""
OverlapScout package initializer.
Defines package version.
"""
__version__ = "0.1.0"
