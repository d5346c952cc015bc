from __future__ import annotations

from navhub.models import (
    Group,
    Site,
    coerce_group_fields,
    coerce_site_fields,
    to_int,
)
from navhub.services.catalog import CatalogStore, DuplicateError, ValidationError
from navhub.services.reconcile import MergeResult, import_snapshot
from navhub.services.snapshot import export_snapshot
from navhub.services.visibility import visible, visible_groups, visible_sites


def _group_fields(payload: dict) -> dict:
    try:
        return coerce_group_fields(payload)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid group field: {exc}") from exc


def _site_fields(payload: dict) -> dict:
    try:
        return coerce_site_fields(payload)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid site field: {exc}") from exc


def _parse_orders(orders) -> list[tuple[int, int]]:
    if not isinstance(orders, list):
        raise ValidationError("order updates must be a list")
    parsed: list[tuple[int, int]] = []
    for item in orders:
        if not isinstance(item, dict):
            raise ValidationError("each order update needs id and order_num")
        try:
            parsed.append((int(item["id"]), to_int(item["order_num"])))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError("each order update needs id and order_num") from exc
    return parsed


class CatalogService:
    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    # Groups

    def get_groups(self, is_authenticated: bool = False) -> list[Group]:
        return visible_groups(self.store.list_groups(), is_authenticated)

    def get_group(self, group_id: int, is_authenticated: bool = False) -> Group | None:
        group = self.store.get_group(group_id)
        if group is None or not visible_groups([group], is_authenticated):
            return None
        return group

    def create_group(self, payload: dict) -> Group:
        fields = _group_fields(payload)
        if not fields.get("name"):
            raise ValidationError("group name is required")
        with self.store.transaction():
            if self.store.find_group_by_name(fields["name"]):
                raise DuplicateError(f"group {fields['name']!r} already exists")
            return self.store.create_group(**fields)

    def update_group(self, group_id: int, payload: dict) -> Group | None:
        fields = _group_fields(payload)
        if "name" in fields and not fields["name"]:
            raise ValidationError("group name cannot be empty")
        with self.store.transaction():
            if "name" in fields:
                other = self.store.find_group_by_name(fields["name"])
                if other is not None and other.id != group_id:
                    raise DuplicateError(f"group {fields['name']!r} already exists")
            return self.store.update_group(group_id, **fields)

    def delete_group(self, group_id: int) -> bool:
        return self.store.delete_group(group_id)

    def update_group_order(self, orders) -> bool:
        parsed = _parse_orders(orders)
        with self.store.transaction():
            for group_id, order_num in parsed:
                self.store.update_group(group_id, order_num=order_num)
        return True

    # Sites

    def get_sites(
        self, group_id: int | None = None, is_authenticated: bool = False
    ) -> list[Site]:
        sites = visible_sites(
            self.store.list_sites(), self.store.list_groups(), is_authenticated
        )
        if group_id is not None:
            return [site for site in sites if site.group_id == group_id]
        return sites

    def get_site(self, site_id: int, is_authenticated: bool = False) -> Site | None:
        site = self.store.get_site(site_id)
        if site is None:
            return None
        if not visible_sites([site], self.store.list_groups(), is_authenticated):
            return None
        return site

    def _check_site(self, fields: dict, site_id: int | None = None) -> None:
        group_id = fields["group_id"]
        if self.store.get_group(group_id) is None:
            raise ValidationError(f"group {group_id} does not exist")
        existing = self.store.find_site(group_id, fields["url"])
        if existing is not None and existing.id != site_id:
            raise DuplicateError(f"site {fields['url']!r} already exists in group")

    def create_site(self, payload: dict) -> Site:
        fields = _site_fields(payload)
        for required in ("group_id", "name", "url"):
            if not fields.get(required):
                raise ValidationError(f"site {required} is required")
        with self.store.transaction():
            self._check_site(fields)
            return self.store.create_site(**fields)

    def update_site(self, site_id: int, payload: dict) -> Site | None:
        fields = _site_fields(payload)
        for required in ("group_id", "name", "url"):
            if required in fields and not fields[required]:
                raise ValidationError(f"site {required} cannot be empty")
        with self.store.transaction():
            existing = self.store.get_site(site_id)
            if existing is None:
                return None
            if "group_id" in fields or "url" in fields:
                self._check_site(
                    {
                        "group_id": fields.get("group_id", existing.group_id),
                        "url": fields.get("url", existing.url),
                    },
                    site_id=site_id,
                )
            return self.store.update_site(site_id, **fields)

    def delete_site(self, site_id: int) -> bool:
        return self.store.delete_site(site_id)

    def update_site_order(self, orders) -> bool:
        parsed = _parse_orders(orders)
        with self.store.transaction():
            for site_id, order_num in parsed:
                self.store.update_site(site_id, order_num=order_num)
        return True

    def groups_with_sites(self, is_authenticated: bool = False) -> list[dict]:
        groups, sites = visible(
            self.store.list_groups(), self.store.list_sites(), is_authenticated
        )
        by_group: dict[int, list[dict]] = {}
        for site in sites:
            by_group.setdefault(site.group_id, []).append(site.as_dict())
        return [
            {**group.as_dict(), "sites": by_group.get(group.id, [])} for group in groups
        ]

    # Configs

    def get_configs(self) -> dict[str, str]:
        return self.store.get_configs()

    def get_config(self, key: str) -> str | None:
        return self.store.get_config(key)

    def set_config(self, key: str, value) -> bool:
        if not key:
            raise ValidationError("config key is required")
        return self.store.set_config(key, "" if value is None else str(value))

    def delete_config(self, key: str) -> bool:
        return self.store.delete_config(key)

    # Snapshots

    def export_data(self) -> dict:
        return export_snapshot(self.store)

    def import_data(self, payload) -> MergeResult:
        return import_snapshot(self.store, payload)
