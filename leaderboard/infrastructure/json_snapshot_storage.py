from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from leaderboard.application.snapshot_builder import snapshot_to_dict
from leaderboard.domain.entities import Snapshot
from leaderboard.domain.interfaces import ISnapshotStorage

log = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = os.path.join("public", "data.json")


class JsonSnapshotStorage(ISnapshotStorage):
    """
    Concrete implementation of ISnapshotStorage writing one JSON file.

    The snapshot is written to a temp file next to the target and then
    moved over it with os.replace, which is atomic on the same filesystem.
    A reader sees either the previous snapshot or the new one, never a
    half-written file.
    """

    def __init__(self, path: str | Path = DEFAULT_OUTPUT_PATH) -> None:
        self._path = Path(path)

    def write(self, snapshot: Snapshot) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot_to_dict(snapshot), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600; the display layer serves this file
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self._path)
        except BaseException:
            # leave the previous snapshot untouched
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        log.debug("Wrote snapshot with %d contributors to %s", len(snapshot.contributors), self._path)
        return str(self._path)
