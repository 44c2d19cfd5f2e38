import base64
import json
from typing import Any, Dict, Union

from dep_updater.domain.exceptions import NotFoundException
from dep_updater.domain.models import Manifest

DEFAULT_INDENT = 2


def detect_indent(text: str) -> Union[int, str]:
    """Returns the indentation unit of a JSON document: a space count or a tab."""
    for line in text.splitlines()[1:]:
        stripped = line.lstrip(" \t")
        if not stripped or len(stripped) == len(line):
            continue
        leading = line[: len(line) - len(stripped)]
        if leading.startswith("\t"):
            return "\t"
        return len(leading)
    return DEFAULT_INDENT


class ManifestTranslator:
    """
    Anti-corruption layer that translates GitHub contents API payloads into Manifest instances
    and manifests back into file text.
    """

    @staticmethod
    def to_domain(raw_file: Any, path: str = "package.json") -> Manifest:
        """
        Decodes a GitHub contents API response into a Manifest.

        Args:
            raw_file (Any): The JSON body of GET /repos/{owner}/{repo}/contents/{path}.
            path (str): The requested path, used in error messages.

        Returns:
            Manifest: Parsed document plus the blob sha needed to overwrite it.

        Raises:
            NotFoundException: If the path resolves to a directory or anything that is not a file.
        """
        # A directory comes back as a list of entries
        if not isinstance(raw_file, dict) or raw_file.get("type", "file") != "file" or "content" not in raw_file:
            raise NotFoundException(f"{path} not found or is a directory")

        sha = raw_file.get("sha")
        if not sha:
            raise ValueError(f"sha is required to build Manifest for {path}.")

        encoding = raw_file.get("encoding", "base64")
        if encoding != "base64":
            raise ValueError(f"Unsupported content encoding '{encoding}' for {path}.")

        text = base64.b64decode(raw_file["content"]).decode("utf-8")
        content: Dict[str, Any] = json.loads(text)
        if not isinstance(content, dict):
            raise ValueError(f"{path} does not contain a JSON object.")

        return Manifest(path=path, content=content, sha=sha, indent=detect_indent(text))

    @staticmethod
    def to_text(manifest: Manifest) -> str:
        """Serializes a manifest the way npm writes package.json: indented JSON with a trailing newline."""
        return json.dumps(manifest.content, indent=manifest.indent, ensure_ascii=False, allow_nan=False) + "\n"

    @staticmethod
    def encode(text: str) -> str:
        return base64.b64encode(text.encode("utf-8")).decode("ascii")
