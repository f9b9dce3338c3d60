"""
Rendering wrapper service.

Downloads the rendering wrapper archive (dgVoodoo2 by default), copies its
DLLs into the game directory, and writes the wrapper's config file.
"""

import logging
import zipfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlparse

import requests

from ..models.configuration import Resolution
from ..models.errors import WrapperInstallError

logger = logging.getLogger(__name__)

WRAPPER_CONFIG_TEMPLATE = """\
[General]
OutputAPI = bestavailable
FullScreenMode = true
ScalingMode = stretched_ar
KeepWindowAspectRatio = true

[Glide]
Resolution = h:{width}, v:{height}

[DirectX]
Resolution = h:{width}, v:{height}
dgVoodooWatermark = false
FastVideoMemoryAccess = true
"""


class WrapperService:
    """Service for staging the rendering wrapper into a game directory."""

    def __init__(self, url: Optional[str], members: Sequence[str], config_name: str,
                 download_dir: Optional[Path] = None, timeout: int = 60):
        """
        Args:
            url: download URL of the wrapper zip; may be None when a local archive is always given
            members: archive paths of the files to stage, e.g. "MS/x86/DDraw.dll"
            config_name: file name of the wrapper config written next to the DLLs
            download_dir: where downloaded archives are cached
            timeout: HTTP timeout in seconds
        """
        self.url = url
        self.members = list(members)
        self.config_name = config_name
        if download_dir is None:
            from retrofit.shared.paths import get_retrofit_downloads_dir
            download_dir = get_retrofit_downloads_dir()
        self.download_dir = Path(download_dir)
        self.timeout = timeout

    def install(self, game_path: Path, resolution: Resolution, archive: Optional[Path] = None,
                progress_callback: Optional[Callable[[int, int], None]] = None) -> List[Path]:
        """
        Stage the wrapper into game_path.

        Args:
            game_path: verified game install directory
            resolution: resolution written to the wrapper config
            archive: local wrapper zip; downloaded from self.url when None
            progress_callback: optional callback for download progress (bytes_downloaded, total_bytes)

        Returns:
            Paths of every file written.

        Raises:
            WrapperInstallError: download, extraction or config write failed
        """
        if archive is None:
            archive = self.download(progress_callback)
        elif not Path(archive).is_file():
            raise WrapperInstallError(f"Wrapper archive not found: {archive}")

        written = self.extract(Path(archive), Path(game_path))
        written.append(self.write_config(Path(game_path), resolution))
        logger.info(f"Rendering wrapper staged into {game_path}")
        return written

    def download(self, progress_callback: Optional[Callable[[int, int], None]] = None) -> Path:
        """Download the wrapper archive to the cache directory and return its path."""
        if not self.url:
            raise WrapperInstallError(
                "No wrapper download URL configured; set \"wrapper_url\" or pass --wrapper-archive"
            )

        file_name = Path(urlparse(self.url).path).name or "wrapper.zip"
        target = self.download_dir / file_name
        logger.info(f"Downloading rendering wrapper from {self.url}")

        try:
            self.download_dir.mkdir(parents=True, exist_ok=True)
            with requests.get(self.url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                total_size = int(response.headers.get('content-length', 0))
                downloaded_size = 0
                with open(target, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
                            downloaded_size += len(chunk)
                            if progress_callback:
                                progress_callback(downloaded_size, total_size)
        except requests.RequestException as e:
            logger.error(f"Failed to download rendering wrapper: {e}")
            self._discard_partial(target)
            raise WrapperInstallError(f"Download failed: {e}") from e
        except OSError as e:
            self._discard_partial(target)
            raise WrapperInstallError(f"Could not save download to {target}: {e}") from e

        logger.info(f"Downloaded {downloaded_size} bytes to {target}")
        return target

    @staticmethod
    def _discard_partial(target: Path) -> None:
        try:
            target.unlink()
            logger.debug(f"Removed incomplete download {target}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove incomplete download {target}: {e}")

    def extract(self, archive: Path, game_path: Path) -> List[Path]:
        """
        Copy the configured archive members, flattened, into game_path.

        Every member is looked up before anything is written, so an archive
        missing one of them leaves the game directory untouched.
        """
        written = []
        try:
            with zipfile.ZipFile(archive) as zf:
                names = {name.replace('\\', '/').lower(): name for name in zf.namelist()}
                selected = []
                for member in self.members:
                    name = names.get(member.replace('\\', '/').lower())
                    if name is None:
                        raise WrapperInstallError(f"{member} not found in {archive.name}")
                    selected.append((name, game_path / Path(member.replace('\\', '/')).name))

                for name, target in selected:
                    with zf.open(name) as src, open(target, 'wb') as dst:
                        dst.write(src.read())
                    logger.debug(f"Staged {name} -> {target}")
                    written.append(target)
        except zipfile.BadZipFile as e:
            raise WrapperInstallError(f"{archive} is not a valid zip archive") from e
        except OSError as e:
            raise WrapperInstallError(f"Failed to stage wrapper files: {e}") from e
        return written

    def write_config(self, game_path: Path, resolution: Resolution) -> Path:
        """Write the wrapper config for the given resolution, replacing any existing one."""
        config_path = game_path / self.config_name
        content = WRAPPER_CONFIG_TEMPLATE.format(width=resolution.width, height=resolution.height)
        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise WrapperInstallError(f"Failed to write {config_path}: {e}") from e
        logger.info(f"{self.config_name} written at {config_path}")
        return config_path
