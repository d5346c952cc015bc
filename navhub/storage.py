from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from navhub.extensions import db
from navhub.models import KVEntry

logger = logging.getLogger(__name__)

GROUPS_KEY = "groups"
SITES_KEY = "sites"
CONFIGS_KEY = "configs"


class KeyValueStorage(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def set_many(self, items: Mapping[str, Any]) -> None: ...

    def remove(self, key: str) -> None: ...


def _decode(key: str, raw: str, default: Any) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Could not decode stored value for %r, using default", key)
        return default


def _encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class MemoryStorage:
    """Process-local storage; values are held JSON-encoded so reads are detached."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._items: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._items[key] = _encode(value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return default
        return _decode(key, raw, default)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, Any]) -> None:
        encoded = {key: _encode(value) for key, value in items.items()}
        self._items.update(encoded)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class SQLAlchemyStorage:
    """Stores each key as one row of ``kv_entries``; needs an app context."""

    def get(self, key: str, default: Any = None) -> Any:
        row = db.session.get(KVEntry, key)
        if row is None:
            return default
        return _decode(key, row.value, default)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, Any]) -> None:
        try:
            for key, value in items.items():
                encoded = _encode(value)
                row = db.session.get(KVEntry, key)
                if row is None:
                    db.session.add(KVEntry(key=key, value=encoded))
                else:
                    row.value = encoded
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def remove(self, key: str) -> None:
        row = db.session.get(KVEntry, key)
        if row is None:
            return
        db.session.delete(row)
        db.session.commit()
