"""Runs the install pipeline over a batch of targets."""

import asyncio
import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from setapp_cli.errors import Unexpected
from setapp_cli.installer import InstallPipeline
from setapp_cli.models import ErrorInfo, InstallResult, InstallTarget

logger = logging.getLogger(__name__)


class InstallSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    installed: int
    skipped: int
    failed: int

    @classmethod
    def from_results(cls, results: Sequence[InstallResult]) -> "InstallSummary":
        successful = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            installed=sum(1 for r in results if r.success and not r.skipped),
            skipped=sum(1 for r in results if r.skipped),
            failed=len(results) - successful,
        )


class Orchestrator:
    """Runs one pipeline per target, sequentially or concurrently.

    Always returns exactly one result per target. Sequential runs keep input
    order and show download progress; parallel runs return results in
    completion order and suppress progress bars.
    """

    def __init__(self, pipeline: InstallPipeline, show_progress: bool = True):
        self.pipeline = pipeline
        self.show_progress = show_progress

    async def run(self, targets: Sequence[InstallTarget], parallel: bool = False) -> list[InstallResult]:
        if parallel:
            pending = [self._run_one(target, show_progress=False) for target in targets]
            return [await result for result in asyncio.as_completed(pending)]

        results = []
        for target in targets:
            results.append(await self._run_one(target, show_progress=self.show_progress))
        return results

    async def _run_one(self, target: InstallTarget, show_progress: bool) -> InstallResult:
        try:
            return await self.pipeline.run(target, show_progress=show_progress)
        except Exception as e:
            logger.exception(f"Unexpected error installing {target.name}")
            error = Unexpected(str(e) or type(e).__name__)
            return InstallResult(name=target.name, success=False, error=ErrorInfo.from_exception(error))
