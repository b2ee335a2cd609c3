"""Error taxonomy for setapp-cli.

Catalog errors are fatal to a run, resolution errors are reported per token,
and install errors are reported per target without affecting the others.
"""

from setapp_cli.models import InstallState


class SetappCliError(Exception):
    """Base class for all setapp-cli errors."""


class CatalogUnavailable(SetappCliError):
    """The catalog could not be fetched or did not have the expected shape."""


class DestinationUnavailable(SetappCliError):
    """The destination directory could not be created."""


class FilesystemError(SetappCliError, OSError):
    """A filesystem command exited unsuccessfully."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"`{' '.join(command)}` exited with status {returncode}{detail}")


class ResolutionError(SetappCliError):
    """A user-supplied token did not resolve to a catalog entry."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(self.describe())

    def describe(self) -> str:
        return f"Could not resolve {self.token!r}"


class IdNotFound(ResolutionError):
    def describe(self) -> str:
        return f"App with ID {self.token} not found."


class NameNotFound(ResolutionError):
    def describe(self) -> str:
        return f'App with name "{self.token}" not found.'


class AmbiguousToken(ResolutionError):
    def describe(self) -> str:
        return f"Invalid app ID: {self.token}. Use --name to search by name."


class InstallError(SetappCliError):
    """An install pipeline stage failed for a single target."""

    def __init__(self, message: str, stage: InstallState | None = None):
        self.stage = stage
        super().__init__(message)


class DownloadFailed(InstallError):
    pass


class ExtractFailed(InstallError):
    pass


class BundleNotFound(InstallError):
    pass


class PlacementFailed(InstallError):
    pass


class Unexpected(InstallError):
    pass
