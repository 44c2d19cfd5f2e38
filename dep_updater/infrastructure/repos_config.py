import json
from pathlib import Path
from typing import Any, List, Optional, Union

from dep_updater.domain.exceptions import ConfigurationException
from dep_updater.domain.models import DEFAULT_BASE_BRANCH, REPOSITORY_PATTERN, RepositoryTarget


def _entry_error(index: int, entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return f"Invalid repository format at index {index}: expected an object, got {json.dumps(entry)}"
    repo = entry.get("repo")
    if not isinstance(repo, str) or not REPOSITORY_PATTERN.fullmatch(repo):
        return f"Invalid repository format at index {index}: {json.dumps(repo)} (expected \"owner/repo\")"
    return None


def parse_repositories(raw: Any, source: str = "repos.json") -> List[RepositoryTarget]:
    """
    Validates a decoded repository list and builds the targets.

    Every invalid entry is collected before raising, so one error lists all of them.

    Raises:
        ConfigurationException: If the list is not an array, is empty, or has invalid entries.
    """
    if not isinstance(raw, list):
        raise ConfigurationException(f"{source} must contain an array of repositories.")
    if not raw:
        raise ConfigurationException(f"{source} is empty. Add at least one repository.")

    errors = [error for index, entry in enumerate(raw) if (error := _entry_error(index, entry))]
    if errors:
        raise ConfigurationException(f"Invalid repository format in {source}:", errors=errors)

    targets = []
    for entry in raw:
        base_branch = entry.get("baseBranch")
        if not isinstance(base_branch, str) or not base_branch:
            base_branch = DEFAULT_BASE_BRANCH
        targets.append(RepositoryTarget(identifier=entry["repo"], base_branch=base_branch))
    return targets


def load_repositories(path: Union[str, Path]) -> List[RepositoryTarget]:
    """
    Reads the repository list file, e.g.

        [{"repo": "owner/app", "baseBranch": "develop"}, {"repo": "owner/lib"}]

    Raises:
        ConfigurationException: If the file is missing, unparsable or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationException(f"{path.name} not found at {path}. Create it with a list of repositories.")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ConfigurationException(f"Failed to parse {path.name}: {e}") from e

    return parse_repositories(raw, source=path.name)
