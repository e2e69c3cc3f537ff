"""
Record Store Reader - locates and loads registry files.

Registry files live under the ``whois/`` directory of the repository as
``<domain>.json``. Change metadata comes from the change-review system as a
JSON list of changed files.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..core.models import ChangedFile, FileStatus
from ..exceptions import InputError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_DIRECTORY = "whois"


def parse_changed_files(data) -> List[ChangedFile]:
    """
    Convert a decoded change file list into ChangedFile entries.

    Args:
        data: List of objects with "filename", "status" and optional "patch"

    Returns:
        List of ChangedFile

    Raises:
        InputError: If the structure is not a list of file objects
    """
    if not isinstance(data, list):
        raise InputError("Change metadata must be a list of files")

    files = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or not isinstance(entry.get("filename"), str):
            raise InputError(f"Change metadata entry {index} has no filename")
        try:
            status = FileStatus(entry.get("status", ""))
        except ValueError:
            raise InputError(
                f"Unknown status '{entry.get('status')}' for {entry['filename']}"
            )
        patch = entry.get("patch")
        files.append(
            ChangedFile(
                filename=entry["filename"],
                status=status,
                patch=patch if isinstance(patch, str) else None,
            )
        )
    return files


def load_changed_files(path: Union[str, Path]) -> List[ChangedFile]:
    """Load the change file list written by the trigger step."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise InputError(f"Change metadata file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"Change metadata file {path} is not valid JSON: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read change metadata file {path}: {e}") from e

    files = parse_changed_files(data)
    logger.info(f"Loaded {len(files)} changed files from {path}")
    return files


def select_registry_files(
    files: Iterable[ChangedFile], directory: str = DEFAULT_REGISTRY_DIRECTORY
) -> List[ChangedFile]:
    """Keep only changed files that are registry records."""
    prefix = directory.strip("/") + "/"
    return [
        f for f in files if f.filename.startswith(prefix) and f.filename.endswith(".json")
    ]


class RegistryReader:
    """Reads registry files from the working tree and stages copies."""

    def __init__(
        self,
        root: Union[str, Path] = ".",
        directory: str = DEFAULT_REGISTRY_DIRECTORY,
        staging_dir: Optional[Union[str, Path]] = None,
    ):
        self.root = Path(root)
        self.directory = directory.strip("/")
        self.staging_dir = Path(staging_dir) if staging_dir else None

    @classmethod
    def from_config(cls, config: Dict) -> "RegistryReader":
        registry_config = config.get("registry", {}) or {}
        return cls(
            root=registry_config.get("root", "."),
            directory=registry_config.get("directory", DEFAULT_REGISTRY_DIRECTORY),
            staging_dir=registry_config.get("staging_dir"),
        )

    def resolve_manual(
        self, domain: Optional[str] = None, whois_file: Optional[str] = None
    ) -> str:
        """Return the repository-relative path for a manual request."""
        if whois_file:
            return f"{self.directory}/{whois_file.strip().lstrip('/')}"
        if domain:
            return f"{self.directory}/{domain.strip()}.json"
        raise InputError("Manual sync requires a domain or a WHOIS file")

    def exists(self, relative_path: str) -> bool:
        return (self.root / relative_path).is_file()

    def read(self, relative_path: str) -> bytes:
        """
        Read a registry file from the working tree.

        Raises:
            InputError: If the file is missing or unreadable
        """
        path = self.root / relative_path
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            raise InputError(f"WHOIS file not found: {relative_path}")
        except OSError as e:
            raise InputError(f"Cannot read WHOIS file {relative_path}: {e}")

        logger.info(f"Read {len(content)} bytes from {relative_path}")
        return content

    def stage(self, filename: str, content: bytes) -> Optional[Path]:
        """Write a copy of the record content to the staging directory."""
        if self.staging_dir is None:
            return None

        self.staging_dir.mkdir(parents=True, exist_ok=True)
        target = self.staging_dir / os.path.basename(filename)
        target.write_bytes(content)
        logger.debug(f"Staged {filename} at {target}")
        return target
