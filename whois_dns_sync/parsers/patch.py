"""
Deleted-content recovery from unified diff patches.

When a registry file is removed, the merged tree no longer has it and the
change patch is the only place its content survives: every line of the old
file appears as a removal line.
"""

import json
import logging
from typing import Dict, List, Optional

from ..exceptions import PatchReconstructionError

logger = logging.getLogger(__name__)


class PatchParser:
    """Rebuilds the JSON document of a removed file from its patch."""

    def __init__(self, patch: Optional[str], filename: Optional[str] = None):
        self.patch = patch
        self.filename = filename or "<patch>"

    def removed_lines(self) -> List[str]:
        """Return removal lines with the marker and surrounding whitespace stripped."""
        if not self.patch or not self.patch.strip():
            raise PatchReconstructionError(
                f"No patch information available for file {self.filename}"
            )

        lines = []
        in_hunk = False
        for line in self.patch.splitlines():
            if line.startswith("@@"):
                in_hunk = True
                continue
            # File headers only appear before the first hunk.
            if not in_hunk and line.startswith(("--- ", "+++ ", "diff ", "index ")):
                continue
            if line.startswith("-"):
                stripped = line[1:].strip()
                if stripped:
                    lines.append(stripped)

        return lines

    def parse(self) -> Dict:
        """Parse the reconstituted content as JSON."""
        lines = self.removed_lines()
        if not lines:
            raise PatchReconstructionError(
                f"Failed to extract file content from patch for {self.filename}"
            )

        content = " ".join(lines)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Extracted content is not valid JSON: {content}")
            raise PatchReconstructionError(
                f"Content extracted from patch for {self.filename} is not valid JSON "
                f"(patch may be truncated): {e}"
            ) from e

        logger.info(f"Recovered {len(lines)} lines of content for {self.filename}")
        return data

    def recover(self) -> str:
        """Return the recovered document in canonical pretty form."""
        return render_json(self.parse())


def render_json(data) -> str:
    """Serialize a registry document the way registry files are written."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def recover_deleted_content(patch: Optional[str], filename: Optional[str] = None) -> str:
    """
    Reconstruct a deleted file's JSON content from its patch.

    Args:
        patch: Unified diff fragment whose removal lines hold the old file
        filename: File name used in error messages

    Returns:
        Pretty-printed JSON text

    Raises:
        PatchReconstructionError: If the patch is empty or does not yield valid JSON
    """
    return PatchParser(patch, filename).recover()
