"""
Retrofit - setup helper for classic games installed through Steam.
"""

__version__ = "0.3.0"
