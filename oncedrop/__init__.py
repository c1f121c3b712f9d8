"""
OnceDrop

One-time, expiring, encrypted file transfer backend.
"""

__version__ = "1.0.0"
