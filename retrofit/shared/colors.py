"""
ANSI color constants for CLI output.
"""

COLOR_RESET = "\033[0m"
COLOR_INFO = "\033[94m"
COLOR_SUCCESS = "\033[92m"
COLOR_WARNING = "\033[93m"
COLOR_ERROR = "\033[91m"
COLOR_DISABLED = "\033[90m"
