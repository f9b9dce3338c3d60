"""
Configuration Data Models

Data structures for configuration context between frontend and backend.
"""

import re
from pathlib import Path
from typing import Optional, Dict
from dataclasses import dataclass, field

from .errors import DisplayQueryError

MIN_WIDTH, MIN_HEIGHT = 640, 480
MAX_WIDTH, MAX_HEIGHT = 7680, 4320


@dataclass(frozen=True)
class AppDescriptor:
    """Identity of the game being set up. Supplied by configuration, never mutated."""
    app_id: str
    executable: str
    display_name: str
    settings_file: str = "settings.ini"

    @property
    def manifest_name(self) -> str:
        return f"appmanifest_{self.app_id}.acf"


@dataclass(frozen=True)
class Resolution:
    """A display resolution in pixels."""
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise DisplayQueryError(f"Invalid resolution {self.width}x{self.height}")

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @classmethod
    def parse(cls, value: str) -> 'Resolution':
        """Parse a WIDTHxHEIGHT string, e.g. '1920x1080'."""
        match = re.match(r'^\s*(\d+)\s*[xX]\s*(\d+)\s*$', value or '')
        if not match:
            raise DisplayQueryError(f"Resolution must be in format WIDTHxHEIGHT, got '{value}'")
        return cls(int(match.group(1)), int(match.group(2)))

    def validate_user_choice(self) -> 'Resolution':
        """Range check for resolutions typed in by the user rather than detected."""
        if self.width < MIN_WIDTH or self.height < MIN_HEIGHT:
            raise DisplayQueryError(f"Resolution must be at least {MIN_WIDTH}x{MIN_HEIGHT}")
        if self.width > MAX_WIDTH or self.height > MAX_HEIGHT:
            raise DisplayQueryError(f"Resolution must be at most {MAX_WIDTH}x{MAX_HEIGHT}")
        return self


@dataclass
class SetupContext:
    """Context object for a single setup run."""
    app: AppDescriptor
    resolution: Optional[Resolution] = None
    extra_settings: Dict[str, str] = field(default_factory=dict)
    skip_wrapper: bool = False
    wrapper_archive: Optional[Path] = None

    def __post_init__(self):
        """Convert string paths to Path objects."""
        if isinstance(self.wrapper_archive, str):
            self.wrapper_archive = Path(self.wrapper_archive)
        if isinstance(self.resolution, str):
            self.resolution = Resolution.parse(self.resolution).validate_user_choice()
