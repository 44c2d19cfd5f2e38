import logging
from typing import List, Optional, Sequence
import aiohttp

from dep_updater.application.repository_pipeline import RepositoryPipeline
from dep_updater.domain.exceptions import PackageVersionNotFoundException
from dep_updater.domain.models import BatchSummary, RepositoryResult, RepositoryTarget
from dep_updater.infrastructure.github_client import GitHubRestClient
from dep_updater.infrastructure.npm_registry import NpmRegistryClient

logger = logging.getLogger(__name__)

# A single pipeline is in flight at any time; the pool only serves its sequential calls
CONNECTOR_LIMIT = 4


class BatchRunner:
    """
    Service responsible for applying one dependency update across a list of repositories.

    Repositories are processed one at a time, in list order. A failure in one
    repository is recorded in its result and the batch moves on to the next.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            registry_client: NpmRegistryClient,
            pipeline: Optional[RepositoryPipeline] = None,
    ):
        self.github_client = github_client
        self.registry_client = registry_client
        self.pipeline = pipeline or RepositoryPipeline(github_client)

    async def run(self, targets: Sequence[RepositoryTarget], package_name: str, new_version: str) -> BatchSummary:
        """
        Verifies the version on npm, then updates every target.

        Raises:
            PackageVersionNotFoundException: If the registry does not confirm the version.
                No repository is contacted in that case.
        """
        async with aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=CONNECTOR_LIMIT),
        ) as session:
            logger.info(f"Checking if {package_name}@{new_version} exists on npm...")
            if not await self.registry_client.exists(session, package_name, new_version):
                raise PackageVersionNotFoundException(package_name, new_version)
            logger.info(f"Found {package_name}@{new_version} on npm")

            results = await self.run_all(session, targets, package_name, new_version)

        return BatchSummary(package_name=package_name, version=new_version, results=results)

    async def run_all(
        self,
        session: aiohttp.ClientSession,
        targets: Sequence[RepositoryTarget],
        package_name: str,
        new_version: str,
    ) -> List[RepositoryResult]:
        logger.info(f"Updating {package_name} to {new_version} in {len(targets)} repo(s)...")

        results: List[RepositoryResult] = []
        for target in targets:
            try:
                result = await self.pipeline.run(session, target, package_name, new_version)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.error(f"{target.identifier}: {message}")
                result = RepositoryResult.failure(target.identifier, message)
            results.append(result)

        return results

    @staticmethod
    def report(summary: BatchSummary) -> None:
        """Logs the categorized outcome of a batch."""
        logger.info(f"=== Summary: {summary.package_name}@{summary.version} ===")

        if summary.successful:
            logger.info(f"Successful: {len(summary.successful)}")
            for result in summary.successful:
                suffix = f" ({result.pull_request_url})" if result.pull_request_url else ""
                logger.info(f"   {result.repository}{suffix}")

        if summary.skipped:
            logger.warning(f"Skipped: {len(summary.skipped)}")
            for result in summary.skipped:
                logger.warning(f"   {result.repository}: {result.skip_reason}")

        if summary.failed:
            logger.error(f"Failed: {len(summary.failed)}")
            for result in summary.failed:
                logger.error(f"   {result.repository}: {result.error}")

        logger.info("Done!")
