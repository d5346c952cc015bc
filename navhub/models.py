from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from navhub.extensions import db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def to_bool(value, default=False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def to_int(value, default: int | None = 0) -> int | None:
    if value is None or value == "":
        return default
    return int(value)


def _reference(value) -> int | None:
    # Unresolvable references become None so the merge can skip the record.
    try:
        return to_int(value, default=None)
    except (TypeError, ValueError):
        return None


def _text(value) -> str:
    return "" if value is None else str(value)


GROUP_EDITABLE_FIELDS = ("name", "is_public", "order_num")
SITE_EDITABLE_FIELDS = (
    "group_id",
    "name",
    "url",
    "icon",
    "description",
    "notes",
    "is_public",
    "order_num",
)
# Fields an import refreshes on an existing site; url and group_id are identity.
SITE_DISPLAY_FIELDS = ("name", "icon", "description", "notes")


@dataclass(frozen=True)
class Group:
    id: int | None
    name: str
    is_public: bool = True
    order_num: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> Group:
        return cls(
            id=to_int(raw.get("id"), default=None),
            name=_text(raw["name"]),
            is_public=to_bool(raw.get("is_public"), default=True),
            order_num=to_int(raw.get("order_num")),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Site:
    id: int | None
    group_id: int | None
    name: str
    url: str
    icon: str = ""
    description: str = ""
    notes: str = ""
    is_public: bool = True
    order_num: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> Site:
        return cls(
            id=to_int(raw.get("id"), default=None),
            group_id=_reference(raw.get("group_id")),
            name=_text(raw.get("name")),
            url=_text(raw["url"]),
            icon=_text(raw.get("icon")),
            description=_text(raw.get("description")),
            notes=_text(raw.get("notes")),
            is_public=to_bool(raw.get("is_public"), default=True),
            order_num=to_int(raw.get("order_num")),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
        )

    def as_dict(self) -> dict:
        return asdict(self)


def coerce_group_fields(changes: dict) -> dict:
    fields: dict = {}
    for key in GROUP_EDITABLE_FIELDS:
        if key not in changes:
            continue
        value = changes[key]
        if key == "is_public":
            value = to_bool(value, default=True)
        elif key == "order_num":
            value = to_int(value)
        else:
            value = _text(value).strip()
        fields[key] = value
    return fields


def coerce_site_fields(changes: dict) -> dict:
    fields: dict = {}
    for key in SITE_EDITABLE_FIELDS:
        if key not in changes:
            continue
        value = changes[key]
        if key == "is_public":
            value = to_bool(value, default=True)
        elif key in {"order_num", "group_id"}:
            value = to_int(value, default=None if key == "group_id" else 0)
        elif key in {"name", "url"}:
            value = _text(value).strip()
        else:
            value = _text(value)
        fields[key] = value
    return fields


class KVEntry(db.Model):
    __tablename__ = "kv_entries"

    key = db.Column(db.String(255), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
