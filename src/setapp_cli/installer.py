"""Per-application install pipeline.

Each target runs through::

    PENDING -> CHECKING -> SKIPPED
                        -> DOWNLOADING -> EXTRACTING -> LOCATING -> PLACING -> DONE

and any stage may end in FAILED. A failure is recorded on that target's
InstallResult and never raised to the caller.

Nothing here coordinates concurrent pipelines: two pipelines placing a bundle
with the same name can both pass the existence checks before either moves its
bundle. Temporary paths carry a random token so concurrent downloads and
extractions never collide.
"""

import logging
import tempfile
import zipfile
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from setapp_cli.constants import BUNDLE_SUFFIX, TEMP_PREFIX
from setapp_cli.errors import (
    BundleNotFound,
    DestinationUnavailable,
    DownloadFailed,
    ExtractFailed,
    InstallError,
    PlacementFailed,
)
from setapp_cli.fetcher import extract_archive
from setapp_cli.filesystem import Filesystem
from setapp_cli.models import ErrorInfo, InstallResult, InstallState, InstallTarget
from setapp_cli.utils import random_token

logger = logging.getLogger(__name__)

# (url, output_path, *, show_progress) -> output_path
Downloader = Callable[..., Awaitable[Path]]
# (archive_path, dest_dir) -> dest_dir
Extractor = Callable[[Path, Path], Awaitable[Path]]

_EXTRACT_ERRORS = (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError)


class _Run:
    """Bookkeeping for a single pipeline run."""

    def __init__(self, target: InstallTarget, temp_dir: Path):
        self.target = target
        self.states: list[InstallState] = [InstallState.PENDING]
        self.installed: list[str] = []
        stem = f"{TEMP_PREFIX}{random_token()}_{target.id}"
        self.archive_path = temp_dir / f"{stem}.zip"
        self.extract_dir = temp_dir / stem

    @property
    def state(self) -> InstallState:
        return self.states[-1]

    def enter(self, state: InstallState) -> None:
        logger.debug(f"{self.target.name}: {self.state} -> {state}")
        self.states.append(state)

    def result(self, **kwargs) -> InstallResult:
        return InstallResult(name=self.target.name, states=tuple(self.states), **kwargs)


class InstallPipeline:
    """Downloads, unpacks and places application bundles into dest_dir."""

    def __init__(
        self,
        dest_dir: Path,
        fs: Filesystem,
        downloader: Downloader,
        extractor: Extractor = extract_archive,
        temp_dir: Path | None = None,
        bundle_suffix: str = BUNDLE_SUFFIX,
    ):
        self.dest_dir = dest_dir
        self.fs = fs
        self.downloader = downloader
        self.extractor = extractor
        self.temp_dir = temp_dir if temp_dir is not None else Path(tempfile.gettempdir())
        self.bundle_suffix = bundle_suffix

    async def ensure_destination(self) -> None:
        """Create dest_dir if it does not exist yet.

        Raises:
            DestinationUnavailable: if the directory cannot be created
        """
        if self.dest_dir.is_dir():
            return
        logger.warning(f"Creating Setapp directory at {self.dest_dir}")
        try:
            await self.fs.make_dirs(self.dest_dir)
        except OSError as e:
            raise DestinationUnavailable(f"Error creating directory {self.dest_dir}: {e}") from e

    def find_existing(self, name: str) -> list[Path]:
        """Bundles in dest_dir whose file name starts with ``name``."""
        try:
            return sorted(
                path
                for path in self.dest_dir.iterdir()
                if path.name.startswith(name) and path.name.endswith(self.bundle_suffix)
            )
        except OSError as e:
            logger.debug(f"Unable to list {self.dest_dir}: {e}")
            return []

    async def run(self, target: InstallTarget, show_progress: bool = False) -> InstallResult:
        run = _Run(target, self.temp_dir)

        run.enter(InstallState.CHECKING)
        if self.find_existing(target.name):
            logger.warning(f"{target.name} already exists in {self.dest_dir}, skipping...")
            run.enter(InstallState.SKIPPED)
            return run.result(success=True, skipped=True)

        try:
            await self._install(run, show_progress)
        except InstallError as e:
            failed_in = run.state
            run.enter(InstallState.FAILED)
            logger.error(f"Error installing {target.name} ({failed_in}): {e}")
            return run.result(
                success=False,
                error=ErrorInfo.from_exception(e, failed_in),
                installed=tuple(run.installed),
            )
        finally:
            await self._cleanup(run)

        run.enter(InstallState.DONE)
        return run.result(success=True, installed=tuple(run.installed))

    async def _install(self, run: _Run, show_progress: bool) -> None:
        target = run.target

        run.enter(InstallState.DOWNLOADING)
        logger.info(f"Downloading {target.name}...")
        try:
            await self.downloader(target.archive_url, run.archive_path, show_progress=show_progress)
        except (httpx.HTTPError, OSError) as e:
            raise DownloadFailed(f"download of {target.archive_url} failed: {e}", run.state) from e

        run.enter(InstallState.EXTRACTING)
        try:
            await self.extractor(run.archive_path, run.extract_dir)
        except _EXTRACT_ERRORS as e:
            raise ExtractFailed(f"unable to extract {run.archive_path.name}: {e}", run.state) from e

        run.enter(InstallState.LOCATING)
        bundles = self._locate(run.extract_dir)
        if not bundles:
            raise BundleNotFound(f"no {self.bundle_suffix} package found in the downloaded archive", run.state)

        run.enter(InstallState.PLACING)
        for bundle in bundles:
            dest_path = self.dest_dir / bundle.name
            if dest_path.exists() or dest_path.is_symlink():
                logger.warning(f"{bundle.name} already exists in {self.dest_dir}, skipping...")
                continue
            try:
                await self.fs.move(bundle, dest_path)
            except OSError as e:
                raise PlacementFailed(f"unable to move {bundle.name} into {self.dest_dir}: {e}", run.state) from e
            logger.info(f"Installed {bundle.name} to {self.dest_dir}")
            run.installed.append(bundle.name)

    def _locate(self, extract_dir: Path) -> list[Path]:
        if not extract_dir.is_dir():
            return []
        return sorted(path for path in extract_dir.iterdir() if path.name.endswith(self.bundle_suffix))

    async def _cleanup(self, run: _Run) -> None:
        for path in (run.extract_dir, run.archive_path):
            try:
                await self.fs.remove(path)
            except OSError as e:
                logger.warning(f"Unable to remove temporary path {path}: {e}")
