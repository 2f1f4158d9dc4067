from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir
from pydantic import ValidationError

from app.trimtime.schemas.session import SessionData

logger = logging.getLogger(__name__)


@dataclass
class AuthStore:
    """The persisted session slot: one JSON file holding ``{user, expires_at}``.

    Lives in the per-user data directory unless ``base_dir`` is given.
    """

    app_name: str = "trimtime"
    filename: str = "session.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        folder = self.base_dir if self.base_dir is not None else Path(user_data_dir(self.app_name, "TrimTime"))
        folder.mkdir(parents=True, exist_ok=True)
        return folder / self.filename

    def save(self, session: SessionData) -> None:
        target = self._path()
        staging = target.with_suffix(".tmp")
        staging.write_text(session.model_dump_json(indent=2))
        if os.name == "posix":
            staging.chmod(0o600)
        os.replace(staging, target)

    def load(self) -> SessionData | None:
        target = self._path()
        if not target.is_file():
            return None
        try:
            return SessionData.model_validate(json.loads(target.read_text()))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("session slot %s is unreadable, clearing it", target)
            self.clear()
            return None

    def clear(self) -> None:
        self._path().unlink(missing_ok=True)
