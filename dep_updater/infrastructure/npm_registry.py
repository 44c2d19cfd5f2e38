import aiohttp
import asyncio
import logging

logger = logging.getLogger(__name__)

REGISTRY_URL = "https://registry.npmjs.org"
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)


class NpmRegistryClient:
    """
    Client for the public npm registry.
    """

    def __init__(self, registry_url: str = REGISTRY_URL):
        self.registry_url = registry_url.rstrip("/")

    def version_url(self, package_name: str, version: str) -> str:
        # Scoped names ("@scope/name") are used as-is in the path
        return f"{self.registry_url}/{package_name}/{version}"

    async def exists(self, session: aiohttp.ClientSession, package_name: str, version: str) -> bool:
        """
        Checks whether `package_name@version` is published.

        Fails closed: a transport error is reported as "does not exist" so the
        batch never runs against a version that could not be verified.
        """
        url = self.version_url(package_name, version)
        try:
            async with session.get(url, timeout=REQUEST_TIMEOUT) as response:
                return 200 <= response.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Registry lookup for {package_name}@{version} failed: {e!r}")
            return False
