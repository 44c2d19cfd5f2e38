from typing import List, Optional


class UpdaterException(Exception):
    """Base exception for all dependency-updater errors."""
    pass

class ConfigurationException(UpdaterException):
    """Raised when the repository list or environment is unusable."""
    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        if self.errors:
            message = message + "\n" + "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(message)

class PackageVersionNotFoundException(UpdaterException):
    """Raised when the requested package version is not published on the registry."""
    def __init__(self, package_name: str, version: str):
        self.package_name = package_name
        self.version = version
        super().__init__(f"Package {package_name}@{version} does not exist on npm registry")

class SourceControlException(UpdaterException):
    """Raised when a GitHub API call fails."""
    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)

class NotFoundException(SourceControlException):
    """Raised when a file, branch or repository does not exist."""
    def __init__(self, message: str):
        super().__init__(message, status=404)

class ConflictException(SourceControlException):
    """Raised when GitHub rejects a write because the remote state changed or already exists."""
    pass

class RateLimitExceededException(SourceControlException):
    """Raised when the GitHub REST rate limit is hit."""
    def __init__(self, reset_at: Optional[str], message: str = "GitHub API rate limit exceeded."):
        self.reset_at = reset_at
        super().__init__(f"{message} Resets at: {reset_at}", status=403)
