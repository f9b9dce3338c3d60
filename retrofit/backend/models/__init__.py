"""
Data models shared between the Retrofit backend and frontends.
"""

from .configuration import AppDescriptor, Resolution, SetupContext
from .errors import (
    RetrofitError,
    NotFoundError,
    ManifestParseError,
    SettingsWriteError,
    RegistryWriteError,
    DisplayQueryError,
    WrapperInstallError,
)
from .results import SearchOutcome, StageStatus, ErrorKind, StageResult, SetupReport

__all__ = [
    'AppDescriptor',
    'Resolution',
    'SetupContext',
    'RetrofitError',
    'NotFoundError',
    'ManifestParseError',
    'SettingsWriteError',
    'RegistryWriteError',
    'DisplayQueryError',
    'WrapperInstallError',
    'SearchOutcome',
    'StageStatus',
    'ErrorKind',
    'StageResult',
    'SetupReport',
]
