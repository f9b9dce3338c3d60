"""
Backend handlers: file, registry and Steam path operations.
"""
