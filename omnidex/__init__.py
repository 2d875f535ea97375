"""
Omnidex - local asset library indexer with marketplace matching.
"""

__version__ = "0.3.0"
