from __future__ import annotations

from collections.abc import Iterable

from navhub.models import Group, Site


def visible_groups(groups: Iterable[Group], is_authenticated: bool) -> list[Group]:
    if is_authenticated:
        return list(groups)
    return [group for group in groups if group.is_public]


def visible_sites(
    sites: Iterable[Site], groups: Iterable[Group], is_authenticated: bool
) -> list[Site]:
    if is_authenticated:
        return list(sites)
    public_group_ids = {group.id for group in visible_groups(groups, False)}
    return [
        site
        for site in sites
        if site.is_public and site.group_id in public_group_ids
    ]


def visible(
    groups: Iterable[Group], sites: Iterable[Site], is_authenticated: bool
) -> tuple[list[Group], list[Site]]:
    groups = list(groups)
    return (
        visible_groups(groups, is_authenticated),
        visible_sites(sites, groups, is_authenticated),
    )
