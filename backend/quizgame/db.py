from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Snapshot

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ADMIN_KEY: str = "change-me"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080"
    CORS_ORIGIN_REGEX: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    # None keeps every game in memory only
    DATA_FILE: Optional[str] = "database.json"
    QUESTION_COUNTDOWN_SEC: float = 3
    MAX_ACTIVE_GAMES: int = 10
    MAX_AUTO_START_NUM: int = 50


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


class GameStore:
    """Authoritative snapshot of every game.

    Every read goes back to the durable file so a timer callback sees what a
    request handler wrote in the meantime. ``transaction()`` is the only way
    to mutate: it holds the process lock across load, mutate and persist.
    """

    def __init__(self, path: str | os.PathLike | None = None):
        self._path = Path(path) if path else None
        self._data = Snapshot()
        self._lock = asyncio.Lock()

    async def load(self) -> Snapshot:
        async with self._lock:
            return await self._load()

    async def persist(self, snapshot: Snapshot) -> None:
        async with self._lock:
            await self._persist(snapshot)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Snapshot]:
        async with self._lock:
            snapshot = await self._load()
            yield snapshot
            await self._persist(snapshot)

    async def _load(self) -> Snapshot:
        if self._path is not None and self._path.exists():
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            self._data = Snapshot.model_validate_json(raw)
        return self._data.model_copy(deep=True)

    async def _persist(self, snapshot: Snapshot) -> None:
        if self._path is not None:
            await asyncio.to_thread(self._write_atomic, snapshot.model_dump_json())
        self._data = snapshot.model_copy(deep=True)

    def _write_atomic(self, payload: str) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".quizgame-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        logger.debug("persisted snapshot to %s", self._path)
