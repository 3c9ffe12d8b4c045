"""Artifact storage for extraction outputs.

Responsibilities:
- Write extracted text and resume-state JSON under one output directory.
- Read JSON artifacts back for resume flows.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class ArtifactStore:
    """Filesystem-backed store rooted at one output directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def path_for(self, relative_path: Path) -> Path:
        """Return the absolute location of an artifact."""

        return self.root / relative_path

    def save_text(self, relative_path: Path, content: str) -> Path:
        """Save UTF-8 text and return the final path."""

        path = self.path_for(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def save_json(self, relative_path: Path, payload: dict[str, Any]) -> Path:
        """Save a JSON object and return the final path."""

        path = self.path_for(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        return path

    def load_json(self, relative_path: Path) -> dict[str, Any]:
        """Load a JSON object artifact.

        Raises:
            ValueError: If the file is not valid JSON or its root is not an object.
        """

        path = self.path_for(relative_path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in `{path}`: {exc.msg}.") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"JSON artifact `{path}` must contain an object.")
        return payload

    def exists(self, relative_path: Path) -> bool:
        """Return whether the given artifact exists."""

        return self.path_for(relative_path).exists()

    def delete(self, relative_path: Path) -> bool:
        """Delete an artifact and return whether it existed."""

        path = self.path_for(relative_path)
        if not path.exists():
            return False
        path.unlink()
        return True
