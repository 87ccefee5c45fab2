"""Remembered-state persistence."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from apigw_sync.core.config.models import ConfigError
from apigw_sync.integrations.aws.models.gateway import RememberedState

logger = structlog.get_logger()


class StateStore:
    """Stores the last successfully applied deployment as a JSON file.

    The file lives at ``{state_dir}/{key}.json`` and uses camelCase keys.
    Writes go to a temporary file in the same directory that then
    replaces the previous file, so a crash never leaves partial state.
    """

    def __init__(self, state_dir: Path, key: str = "default") -> None:
        self._state_dir = Path(state_dir).expanduser()
        self._key = key

    @property
    def path(self) -> Path:
        """Get the state file path."""
        return self._state_dir / f"{self._key}.json"

    def load(self) -> RememberedState:
        """Read remembered state; a missing file means nothing is remembered.

        Raises:
            ConfigError: If the file exists but cannot be parsed.
        """
        if not self.path.exists():
            return RememberedState()
        try:
            return RememberedState.model_validate_json(self.path.read_text())
        except ValidationError as e:
            raise ConfigError(f"Corrupt state file {self.path}:\n{e}", path=self.path) from e

    def save(self, state: RememberedState) -> None:
        """Atomically replace the state file."""
        self._state_dir.mkdir(parents=True, exist_ok=True)
        payload = state.model_dump_json(by_alias=True, exclude_none=True, indent=2)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._state_dir, prefix=f".{self._key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(payload + "\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("saved_state", path=str(self.path), endpoints=len(state.endpoints))

    def clear(self) -> None:
        """Forget everything."""
        self.path.unlink(missing_ok=True)
        logger.debug("cleared_state", path=str(self.path))
