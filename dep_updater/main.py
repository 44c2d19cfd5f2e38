import argparse
import asyncio
import sys
import logging
from typing import List, Optional
from dotenv import load_dotenv

from dep_updater.config import Settings
from dep_updater.infrastructure.github_client import GitHubRestClient
from dep_updater.infrastructure.npm_registry import NpmRegistryClient
from dep_updater.application.batch_runner import BatchRunner
from dep_updater.domain.exceptions import UpdaterException

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dep-updater",
        description="Update an npm dependency across GitHub repositories, one pull request per repository.",
        epilog="Example: dep-updater react 18.2.0",
    )
    parser.add_argument("package_name", help="npm package name, e.g. react or @octokit/rest")
    parser.add_argument("version", help="exact version to write into package.json")
    parser.add_argument(
        "--repos",
        dest="repos_path",
        default=None,
        help="path to the repository list (default: $REPOS_CONFIG_PATH or ./repos.json)",
    )
    args = parser.parse_args(argv)
    # An empty positional counts as missing
    if not args.package_name.strip() or not args.version.strip():
        parser.error("package name and version must be non-empty")
    return args


async def main(argv: Optional[List[str]] = None) -> None:
    # Usage errors exit with status 2 before anything else is read
    args = parse_args(argv)

    # Load environment variables from .env file
    load_dotenv()

    try:
        settings = Settings.from_env(args.repos_path)
    except UpdaterException as e:
        logger.error(str(e))
        sys.exit(1)

    runner = BatchRunner(
        github_client=GitHubRestClient(token=settings.github_token),
        registry_client=NpmRegistryClient(),
    )

    try:
        summary = await runner.run(settings.repositories, args.package_name, args.version)
    except UpdaterException as e:
        logger.error(str(e))
        sys.exit(1)

    BatchRunner.report(summary)


def cli() -> None:
    configure_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        # asyncio.run cancels the task and re-raises here, not inside main()
        logger.info("Update interrupted by user. Exiting gracefully.")


if __name__ == "__main__":
    cli()
