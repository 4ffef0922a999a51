import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import CatalogNotFound

DEFAULT_DATA_FILE = ".rpcdata"


class MemoryStore:
    """Simple in-memory catalog store."""

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        self._document: Optional[Dict[str, Any]] = copy.deepcopy(document)
        self.saves = 0

    def load(self) -> Dict[str, Any]:
        if self._document is None:
            raise CatalogNotFound("No catalog stored in memory.")
        return copy.deepcopy(self._document)

    def save(self, document: Dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)
        self.saves += 1


class JsonFileStore:
    """Catalog document kept as pretty-printed JSON on disk."""

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = Path(path) if path else Path.cwd() / DEFAULT_DATA_FILE

    def load(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError as exc:
            raise CatalogNotFound(f"No catalog at {self.path}.") from exc

    def save(self, document: Dict[str, Any]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        # Write next to the target so os.replace stays on one filesystem.
        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
