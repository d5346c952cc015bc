from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from dateutil import parser as dt_parser

from navhub.models import Group, Site, utcnow_iso
from navhub.services.catalog import CatalogError, CatalogStore

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


class SnapshotError(CatalogError):
    pass


@dataclass(frozen=True)
class Snapshot:
    groups: tuple[Group, ...] = ()
    sites: tuple[Site, ...] = ()
    configs: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    version: str = SNAPSHOT_VERSION
    export_date: datetime | None = None


def export_snapshot(store: CatalogStore) -> dict:
    with store.transaction():
        groups = store.list_groups()
        sites = store.list_sites()
        configs = store.get_configs()
    return {
        "groups": [group.as_dict() for group in groups],
        "sites": [site.as_dict() for site in sites],
        "configs": configs,
        "version": SNAPSHOT_VERSION,
        "exportDate": utcnow_iso(),
    }


def _parse_export_date(value) -> datetime | None:
    if not value:
        return None
    try:
        return dt_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        return None


def parse_snapshot(payload) -> Snapshot:
    if not isinstance(payload, dict):
        raise SnapshotError("snapshot must be a JSON object")

    groups = payload.get("groups")
    sites = payload.get("sites")
    configs = payload.get("configs") or {}
    if not isinstance(groups, list):
        raise SnapshotError("snapshot field 'groups' must be a list")
    if not isinstance(sites, list):
        raise SnapshotError("snapshot field 'sites' must be a list")
    if not isinstance(configs, dict):
        raise SnapshotError("snapshot field 'configs' must be an object")

    version = str(payload.get("version") or SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        logger.warning(
            "Snapshot version %s differs from %s, importing as-is",
            version,
            SNAPSHOT_VERSION,
        )

    return Snapshot(
        groups=tuple(Group.from_dict(row) for row in groups),
        sites=tuple(Site.from_dict(row) for row in sites),
        configs=MappingProxyType(
            {
                str(key): "" if value is None else str(value)
                for key, value in configs.items()
            }
        ),
        version=version,
        export_date=_parse_export_date(payload.get("exportDate")),
    )
