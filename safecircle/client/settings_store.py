"""Privacy/permission settings as commands applied by a reducer.

dispatch(command) -> reduce(state, command) -> persist -> new state.
The in-memory state only changes after the write succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from enum import Enum

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from safecircle.client.local_db import StoredSetting, create_local_engine
from safecircle.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    LOCATION = "location"
    CAMERA = "camera"
    AUDIO = "audio"
    PHOTOS = "photos"


@dataclass(frozen=True)
class PrivacySettings:
    location: bool = True
    camera: bool = False
    audio: bool = False
    photos: bool = True


@dataclass(frozen=True)
class ToggleSetting:
    key: Permission


@dataclass(frozen=True)
class SetSetting:
    key: Permission
    value: bool


@dataclass(frozen=True)
class ResetSettings:
    pass


Command = ToggleSetting | SetSetting | ResetSettings


def reduce(state: PrivacySettings, command: Command) -> PrivacySettings:
    """Pure state transition."""
    if isinstance(command, ToggleSetting):
        key = Permission(command.key).value
        return replace(state, **{key: not getattr(state, key)})
    if isinstance(command, SetSetting):
        return replace(state, **{Permission(command.key).value: bool(command.value)})
    if isinstance(command, ResetSettings):
        return PrivacySettings()
    raise TypeError(f"Unknown settings command: {command!r}")


class SettingsStore:
    def __init__(self, engine: Engine) -> None:
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self.state = self._load()

    @classmethod
    def open(cls, url: str) -> "SettingsStore":
        return cls(create_local_engine(url))

    def dispatch(self, command: Command) -> PrivacySettings:
        new_state = reduce(self.state, command)
        if new_state != self.state:
            self._persist(new_state)
            logger.debug("Privacy settings now %s", new_state)
        self.state = new_state
        return new_state

    def location_enabled(self) -> bool:
        return self.state.location

    def _load(self) -> PrivacySettings:
        with self._session_factory() as db:
            stored = {row.key: row.value for row in db.scalars(select(StoredSetting))}
        known = {f.name for f in fields(PrivacySettings)}
        return PrivacySettings(**{k: v for k, v in stored.items() if k in known})

    def _persist(self, state: PrivacySettings) -> None:
        try:
            with self._session_factory.begin() as db:
                for f in fields(PrivacySettings):
                    db.merge(StoredSetting(key=f.name, value=getattr(state, f.name)))
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not save privacy settings") from exc
