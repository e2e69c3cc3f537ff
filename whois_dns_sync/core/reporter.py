"""
Result Reporter - writes and renders the sync result artifact

The artifact is always written, including on failure paths, so notification
and status steps have one well-known file to read.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from rich.console import Console
from rich.table import Table

from .models import SyncResult, utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_RESULT_FILE = "dns-sync-result.json"
READ_FAILURE_MESSAGE = "Failed to read DNS sync results"


class ResultReporter:
    """Persists SyncResult artifacts and prints them for operators."""

    def __init__(
        self,
        result_file: Union[str, Path] = DEFAULT_RESULT_FILE,
        console: Optional[Console] = None,
    ):
        self.result_file = Path(result_file)
        self.console = console or Console()

    def write(self, result: SyncResult) -> Path:
        """Write the result atomically to the artifact path."""
        directory = self.result_file.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=str(directory), prefix=".dns-sync-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, self.result_file)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.info(f"Sync result written to {self.result_file}")
        return self.result_file

    def render(self, result: Union[SyncResult, Dict]):
        """Print a summary table of the result."""
        render_result(result, self.console)


def render_result(result: Union[SyncResult, Dict], console: Console):
    data = result.to_dict() if isinstance(result, SyncResult) else result
    success = bool(data.get("success"))

    title = "DNS Sync Successful" if success else "DNS Sync Failed"
    table = Table(title=title, title_style="bold green" if success else "bold red")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    for key in ("operation", "domain", "nameservers", "message", "error", "timestamp"):
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key.capitalize(), str(value))

    console.print(table)


def read_result(result_file: Union[str, Path] = DEFAULT_RESULT_FILE) -> Dict:
    """
    Read a result artifact the way downstream consumers do.

    A missing or corrupt artifact means the engine crashed before reporting,
    and is read as a generic failure.
    """
    try:
        with open(result_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading DNS sync result {result_file}: {e}")
        return {"success": False, "error": READ_FAILURE_MESSAGE, "timestamp": utc_timestamp()}

    if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
        logger.error(f"DNS sync result {result_file} has an unexpected structure")
        return {"success": False, "error": READ_FAILURE_MESSAGE, "timestamp": utc_timestamp()}

    return data
