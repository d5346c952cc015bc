from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace

from navhub.models import Group, Site, utcnow_iso
from navhub.storage import CONFIGS_KEY, GROUPS_KEY, SITES_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

DELETE_POLICY_LEAVE_ORPHANS = "leave-orphans"
DELETE_POLICY_DELETE_CHILDREN = "delete-children"
DELETE_POLICY_REJECT_NONEMPTY = "reject-if-nonempty"

DELETE_POLICIES = {
    DELETE_POLICY_LEAVE_ORPHANS,
    DELETE_POLICY_DELETE_CHILDREN,
    DELETE_POLICY_REJECT_NONEMPTY,
}


class CatalogError(Exception):
    pass


class ValidationError(CatalogError):
    pass


class DuplicateError(CatalogError):
    pass


class GroupNotEmptyError(CatalogError):
    pass


def _next_id(items) -> int:
    return max((item.id or 0 for item in items), default=0) + 1


MANAGED_FIELDS = ("id", "created_at", "updated_at")


def _strip_managed(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k not in MANAGED_FIELDS}


class CatalogStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        delete_policy: str = DELETE_POLICY_LEAVE_ORPHANS,
    ) -> None:
        if delete_policy not in DELETE_POLICIES:
            raise ValueError(f"unknown group delete policy: {delete_policy!r}")
        self.storage = storage
        self.delete_policy = delete_policy
        self._groups: list[Group] = []
        self._sites: list[Site] = []
        self._configs: dict[str, str] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._dirty: set[str] = set()

    def load(self) -> CatalogStore:
        with self._lock:
            groups = self.storage.get(GROUPS_KEY, []) or []
            sites = self.storage.get(SITES_KEY, []) or []
            configs = self.storage.get(CONFIGS_KEY, {}) or {}
            self._groups = [Group.from_dict(row) for row in groups]
            self._sites = [Site.from_dict(row) for row in sites]
            self._configs = {str(key): str(value) for key, value in configs.items()}
        logger.debug(
            "Loaded catalog: %d groups, %d sites, %d configs",
            len(self._groups),
            len(self._sites),
            len(self._configs),
        )
        return self

    @contextmanager
    def transaction(self) -> Iterator[CatalogStore]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            checkpoint = (list(self._groups), list(self._sites), dict(self._configs))
            self._depth = 1
            self._dirty = set()
            try:
                yield self
                if self._dirty:
                    self._flush(self._dirty)
            except BaseException:
                self._groups, self._sites, self._configs = checkpoint
                raise
            finally:
                self._depth = 0
                self._dirty = set()

    def _flush(self, keys: set[str]) -> None:
        payload: dict = {}
        if GROUPS_KEY in keys:
            payload[GROUPS_KEY] = [group.as_dict() for group in self._groups]
        if SITES_KEY in keys:
            payload[SITES_KEY] = [site.as_dict() for site in self._sites]
        if CONFIGS_KEY in keys:
            payload[CONFIGS_KEY] = dict(self._configs)
        self.storage.set_many(payload)

    def _touch(self, key: str) -> None:
        self._dirty.add(key)

    # Groups

    def list_groups(self) -> list[Group]:
        with self._lock:
            return list(self._groups)

    def get_group(self, group_id: int) -> Group | None:
        with self._lock:
            return next((g for g in self._groups if g.id == group_id), None)

    def find_group_by_name(self, name: str) -> Group | None:
        with self._lock:
            return next((g for g in self._groups if g.name == name), None)

    def create_group(self, **fields) -> Group:
        with self.transaction():
            now = utcnow_iso()
            group = Group(
                **_strip_managed(fields),
                id=_next_id(self._groups),
                created_at=now,
                updated_at=now,
            )
            self._groups.append(group)
            self._touch(GROUPS_KEY)
            return group

    def update_group(self, group_id: int, **changes) -> Group | None:
        with self.transaction():
            for index, existing in enumerate(self._groups):
                if existing.id != group_id:
                    continue
                updated = replace(
                    existing, **_strip_managed(changes), updated_at=utcnow_iso()
                )
                self._groups[index] = updated
                self._touch(GROUPS_KEY)
                return updated
            return None

    def delete_group(self, group_id: int) -> bool:
        with self.transaction():
            group = self.get_group(group_id)
            if group is None:
                return False

            children = [site for site in self._sites if site.group_id == group_id]
            if children and self.delete_policy == DELETE_POLICY_REJECT_NONEMPTY:
                raise GroupNotEmptyError(
                    f"group {group_id} still contains {len(children)} sites"
                )
            if children and self.delete_policy == DELETE_POLICY_DELETE_CHILDREN:
                self._sites = [s for s in self._sites if s.group_id != group_id]
                self._touch(SITES_KEY)

            self._groups = [g for g in self._groups if g.id != group_id]
            self._touch(GROUPS_KEY)
            return True

    # Sites

    def list_sites(self) -> list[Site]:
        with self._lock:
            return list(self._sites)

    def get_site(self, site_id: int) -> Site | None:
        with self._lock:
            return next((s for s in self._sites if s.id == site_id), None)

    def find_site(self, group_id: int, url: str) -> Site | None:
        with self._lock:
            return next(
                (s for s in self._sites if s.group_id == group_id and s.url == url),
                None,
            )

    def create_site(self, **fields) -> Site:
        with self.transaction():
            now = utcnow_iso()
            site = Site(
                **_strip_managed(fields),
                id=_next_id(self._sites),
                created_at=now,
                updated_at=now,
            )
            self._sites.append(site)
            self._touch(SITES_KEY)
            return site

    def update_site(self, site_id: int, **changes) -> Site | None:
        with self.transaction():
            for index, existing in enumerate(self._sites):
                if existing.id != site_id:
                    continue
                updated = replace(
                    existing, **_strip_managed(changes), updated_at=utcnow_iso()
                )
                self._sites[index] = updated
                self._touch(SITES_KEY)
                return updated
            return None

    def delete_site(self, site_id: int) -> bool:
        with self.transaction():
            if self.get_site(site_id) is None:
                return False
            self._sites = [s for s in self._sites if s.id != site_id]
            self._touch(SITES_KEY)
            return True

    # Configs

    def get_configs(self) -> dict[str, str]:
        with self._lock:
            return dict(self._configs)

    def get_config(self, key: str) -> str | None:
        with self._lock:
            return self._configs.get(key)

    def set_config(self, key: str, value: str) -> bool:
        return self.update_configs({key: value})

    def update_configs(self, values: Mapping[str, str]) -> bool:
        with self.transaction():
            if values:
                self._configs.update(values)
                self._touch(CONFIGS_KEY)
            return True

    def delete_config(self, key: str) -> bool:
        with self.transaction():
            if key not in self._configs:
                return False
            del self._configs[key]
            self._touch(CONFIGS_KEY)
            return True
