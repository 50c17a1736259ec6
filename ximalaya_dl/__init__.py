"""
ximalaya-dl: download Ximalaya albums and tracks from the command line.
"""

__version__ = "0.3.0"
