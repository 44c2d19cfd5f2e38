import logging
import aiohttp

from dep_updater.domain.manifest_mutator import ManifestMutator
from dep_updater.domain.models import RepositoryResult, RepositoryTarget
from dep_updater.infrastructure.acl import ManifestTranslator
from dep_updater.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

SKIP_NOT_FOUND = "not found in dependencies"
SKIP_UP_TO_DATE = "already up to date"
SKIP_NOT_UPDATED = "could not be updated"


def branch_name_for(package_name: str, new_version: str) -> str:
    return f"deps/update-{package_name}-{new_version}"


def commit_message_for(package_name: str, new_version: str) -> str:
    return f"deps: update {package_name} to {new_version}"


def pull_request_title_for(package_name: str, new_version: str) -> str:
    return f"Update {package_name} to {new_version}"


def pull_request_body_for(package_name: str, new_version: str) -> str:
    return (
        f"This PR updates `{package_name}` to version `{new_version}`.\n"
        "\n"
        "Generated automatically by npm-dependency-updater."
    )


class RepositoryPipeline:
    """
    Updates one repository: read package.json, rewrite the dependency, push it to a
    fresh branch and open a pull request against the target's base branch.

    Errors from GitHub are not caught here. A failure after the branch is created
    leaves that branch in place without a pull request.
    """

    def __init__(self, github_client: GitHubRestClient):
        self.github_client = github_client

    async def run(
        self,
        session: aiohttp.ClientSession,
        target: RepositoryTarget,
        package_name: str,
        new_version: str,
    ) -> RepositoryResult:
        logger.info(f"{target.identifier} ({target.base_branch})")

        logger.info("  -> Fetching package.json...")
        manifest = await self.github_client.read_manifest(session, target)

        logger.info(f"  -> Updating {package_name} to {new_version}...")
        outcome = ManifestMutator.apply(manifest, package_name, new_version)

        if not outcome.found:
            logger.warning(f"{package_name} not found in dependencies")
            return RepositoryResult.skip(target.identifier, SKIP_NOT_FOUND)

        if outcome.already_up_to_date:
            logger.warning(f"{package_name} is already at version {new_version}, skipping...")
            return RepositoryResult.skip(target.identifier, SKIP_UP_TO_DATE)

        if not outcome.updated:
            logger.warning(f"{package_name} could not be updated")
            return RepositoryResult.skip(target.identifier, SKIP_NOT_UPDATED)

        groups = ", ".join(group.value for group in outcome.updated_groups)
        logger.info(f"  -> Updated {package_name} in {groups}")

        new_content = ManifestTranslator.to_text(manifest)
        branch_name = branch_name_for(package_name, new_version)

        logger.info(f"  -> Creating branch: {branch_name}")
        base_sha = await self.github_client.read_branch_head(session, target.identifier, target.base_branch)
        await self.github_client.ensure_branch(session, target.identifier, branch_name, base_sha)

        logger.info("  -> Committing changes...")
        await self.github_client.commit_file(
            session,
            target.identifier,
            branch_name,
            manifest.path,
            new_content,
            manifest.sha,
            commit_message_for(package_name, new_version),
        )

        pull_request_url = await self.github_client.open_pull_request(
            session,
            target.identifier,
            head=branch_name,
            base=target.base_branch,
            title=pull_request_title_for(package_name, new_version),
            body=pull_request_body_for(package_name, new_version),
        )
        logger.info(f"Pull Request created: {pull_request_url}")

        return RepositoryResult.completed(target.identifier, pull_request_url)
