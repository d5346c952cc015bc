from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from navhub.models import SITE_DISPLAY_FIELDS, Group, Site
from navhub.services.catalog import CatalogStore
from navhub.services.snapshot import Snapshot, parse_snapshot

logger = logging.getLogger(__name__)


@dataclass
class GroupStats:
    total: int = 0
    created: int = 0
    merged: int = 0


@dataclass
class SiteStats:
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass
class MergeStats:
    groups: GroupStats = field(default_factory=GroupStats)
    sites: SiteStats = field(default_factory=SiteStats)


@dataclass
class MergeResult:
    success: bool
    stats: MergeStats | None = None
    error: str | None = None

    def as_dict(self) -> dict:
        if self.success:
            return {"success": True, "stats": asdict(self.stats)}
        return {"success": False, "error": self.error}


def _failure(exc: Exception) -> MergeResult:
    message = str(exc) or exc.__class__.__name__
    if isinstance(exc, KeyError):
        message = f"missing field {exc}"
    return MergeResult(success=False, error=message)


def _merge_groups(
    store: CatalogStore, groups: tuple[Group, ...], stats: GroupStats
) -> dict[int, int]:
    group_map: dict[int, int] = {}
    for incoming in groups:
        existing = store.find_group_by_name(incoming.name)
        if existing is not None:
            if incoming.id is not None:
                group_map[incoming.id] = existing.id
            stats.merged += 1
            continue

        created = store.create_group(
            name=incoming.name,
            is_public=incoming.is_public,
            order_num=incoming.order_num,
        )
        if incoming.id is not None:
            group_map[incoming.id] = created.id
        stats.created += 1
    return group_map


def _merge_sites(
    store: CatalogStore,
    sites: tuple[Site, ...],
    group_map: dict[int, int],
    stats: SiteStats,
) -> None:
    for incoming in sites:
        live_group_id = group_map.get(incoming.group_id)
        if live_group_id is None:
            stats.skipped += 1
            continue

        existing = store.find_site(live_group_id, incoming.url)
        if existing is not None:
            store.update_site(
                existing.id,
                **{name: getattr(incoming, name) for name in SITE_DISPLAY_FIELDS},
            )
            stats.updated += 1
            continue

        store.create_site(
            group_id=live_group_id,
            name=incoming.name,
            url=incoming.url,
            icon=incoming.icon,
            description=incoming.description,
            notes=incoming.notes,
            is_public=incoming.is_public,
            order_num=incoming.order_num,
        )
        stats.created += 1


def merge_snapshot(store: CatalogStore, snapshot: Snapshot) -> MergeResult:
    stats = MergeStats(
        groups=GroupStats(total=len(snapshot.groups)),
        sites=SiteStats(total=len(snapshot.sites)),
    )
    try:
        # Groups first: site resolution needs ids created earlier in this import.
        with store.transaction():
            group_map = _merge_groups(store, snapshot.groups, stats.groups)
            _merge_sites(store, snapshot.sites, group_map, stats.sites)
            store.update_configs(snapshot.configs)
    except Exception as exc:
        logger.exception("Snapshot import failed, catalog left unchanged")
        return _failure(exc)

    logger.info(
        "Imported snapshot: groups %s, sites %s",
        asdict(stats.groups),
        asdict(stats.sites),
    )
    return MergeResult(success=True, stats=stats)


def import_snapshot(store: CatalogStore, payload) -> MergeResult:
    try:
        snapshot = parse_snapshot(payload)
    except Exception as exc:
        logger.exception("Rejected snapshot payload")
        return _failure(exc)
    return merge_snapshot(store, snapshot)
