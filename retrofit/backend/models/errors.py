"""
Error Types

Expected failure conditions raised by Retrofit handlers. Anything raised that
is not a RetrofitError is treated by the setup pipeline as an unexpected fault.
"""

from typing import Iterable, Optional


class RetrofitError(Exception):
    """Base class for expected, user-reportable failures."""
    pass


class NotFoundError(RetrofitError):
    """Something we searched for (Steam root, game install) could not be found."""

    def __init__(self, message: str, probed: Optional[Iterable] = None):
        self.probed = [str(p) for p in (probed or [])]
        if self.probed:
            message = f"{message} (checked: {', '.join(self.probed)})"
        super().__init__(message)


class ManifestParseError(RetrofitError):
    """A Steam manifest was missing, unreadable, or held no usable entries."""

    def __init__(self, message: str, path):
        self.path = path
        super().__init__(f"{message}: {path}")


class SettingsWriteError(RetrofitError):
    """The game settings file could not be written."""

    def __init__(self, message: str, path):
        self.path = path
        super().__init__(f"{message}: {path}")


class RegistryWriteError(RetrofitError):
    """A registry value could not be written."""

    def __init__(self, message: str, location):
        self.location = location
        super().__init__(f"{message}: {location}")


class DisplayQueryError(RetrofitError):
    """The display resolution could not be determined."""
    pass


class WrapperInstallError(RetrofitError):
    """Downloading or staging the rendering wrapper failed."""
    pass
