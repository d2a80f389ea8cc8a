"""Category reconciliation: Mint categories → Lunch Money categories.

Public operations:

- :func:`generate_category_mapping`: write a reviewable mapping with fuzzy
  suggestions against the live Lunch Money catalog.
- :func:`resolve_categories`: annotate records with destination names/tags.
- :func:`reconcile_group_conflicts`: keep group and category names disjoint.
- :func:`plan_remote_categories` / :func:`create_remote_categories`: create
  missing groups first, then missing leaf categories.
- :func:`add_destination_category_ids`: attach remote category ids.

Categories with no explicit mapping entry resolve to their own name (identity
fallback), so exact matches never need an entry in the mapping file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from .client import DestinationCatalog
from .errors import CategoryGroupConflictError, MappingExistsError, UnmappedCategoriesError
from .logging_setup import get_logger
from .matching import Matcher, best_match, rank_matches
from .models import (
    UNCATEGORIZED,
    CategoryDescriptor,
    CategoryGroupDescriptor,
    CategoryMappingDoc,
    FullDescriptor,
    Records,
    RemoteCategory,
    SimpleRename,
    TransactionRecord,
    distinct,
    split_catalog,
)
from .store import MappingStore

_logger = get_logger("mint_lunchmoney.categories")

# Tags applied by a descriptor entry that does not list any.
_DEFAULT_TAGS: tuple[str, ...] = ("uncategorized",)


def _source_categories(records: Records) -> list[str]:
    return distinct(r.category for r in records if r.category)


# ----------------------------------------------------------------------------
# Mapping generation
# ----------------------------------------------------------------------------


def generate_category_mapping(
    records: Records,
    remote_categories: Sequence[RemoteCategory],
    store: MappingStore,
    *,
    overwrite: bool = False,
    matcher: Matcher = best_match,
) -> CategoryMappingDoc:
    """Create the category mapping document for the user to review.

    Refuses to replace an existing document unless ``overwrite`` is set.
    Every Mint category that is not an exact Lunch Money leaf name receives a
    suggestion from ``matcher``; with an empty catalog the suggestion is the
    Mint name itself. The document is saved to ``store`` and returned.
    """

    if store.has_categories() and not overwrite:
        raise MappingExistsError(store.describe_categories())

    groups, leaves = split_catalog(remote_categories)
    leaf_set = set(leaves)
    source = _source_categories(records)

    exact = [c for c in source if c in leaf_set]
    if exact:
        _logger.info("categories:exact_matches count=%d names=%s", len(exact), exact)
    else:
        _logger.info("categories:exact_matches count=0")

    suggestions: dict[str, FullDescriptor] = {}
    for name in source:
        if name in leaf_set or name == UNCATEGORIZED:
            continue
        target = matcher(name, leaves)
        if _logger.isEnabledFor(logging.DEBUG) and leaves:
            _logger.debug("categories:candidates mint=%s ranked=%s", name, rank_matches(name, leaves))
        suggestions[name] = FullDescriptor(descriptor=CategoryDescriptor(category=target, tags=[]))

    doc = CategoryMappingDoc(categories=suggestions, category_groups={}, lunch_money_options=leaves)
    store.save_categories(doc)
    _logger.info(
        "categories:mapping_written path=%s to_map=%d remote_groups=%d remote_categories=%d",
        store.describe_categories(),
        len(suggestions),
        len(groups),
        len(leaves),
    )
    return doc


# ----------------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------------


def resolve_categories(
    records: Records,
    mapping: CategoryMappingDoc,
    remote_categories: Sequence[RemoteCategory],
    *,
    matcher: Matcher = best_match,
) -> list[TransactionRecord]:
    """Set destination category name (and tags) for every record.

    Raises :class:`~mint_lunchmoney.errors.UnmappedCategoriesError` before
    touching any record when a Mint category is neither a Lunch Money leaf
    category nor a key of ``mapping``. The error carries best-match
    suggestions so the mapping can be extended.
    """

    _groups, leaves = split_catalog(remote_categories)
    known = set(leaves) | set(mapping.categories) | {UNCATEGORIZED}
    unmapped = [c for c in _source_categories(records) if c not in known]
    if unmapped:
        suggestions = {c: matcher(c, leaves) for c in unmapped} if leaves else {}
        raise UnmappedCategoriesError(unmapped, suggestions)

    out: list[TransactionRecord] = []
    for r in records:
        note = f"Original Mint category: {r.category}"
        match mapping.categories.get(r.category):
            case None:
                out.append(replace(r, dest_category_name=r.category or UNCATEGORIZED))
            case SimpleRename(name=name):
                out.append(replace(r, dest_category_name=name).with_note(note))
            case FullDescriptor(descriptor=d):
                tags = tuple(distinct(d.tags)) if d.tags is not None else _DEFAULT_TAGS
                out.append(replace(r, dest_category_name=d.category, tags=tags).with_note(note))
    return out


def reconcile_group_conflicts(
    category_names: Iterable[str],
    existing_group_names: Iterable[str],
    pending_group_names: Iterable[str],
) -> None:
    """Raise when a destination category name is also a group name."""

    group_names = set(existing_group_names) | set(pending_group_names)
    conflicts = [n for n in distinct(category_names) if n in group_names]
    if conflicts:
        raise CategoryGroupConflictError(conflicts)


# ----------------------------------------------------------------------------
# Remote creation
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryCreationPlan:
    """Groups and leaf categories that must be created in Lunch Money."""

    groups: tuple[tuple[str, CategoryGroupDescriptor], ...] = ()
    categories: tuple[CategoryDescriptor, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.groups and not self.categories


@dataclass(frozen=True, slots=True)
class CreatedCategories:
    groups: dict[str, int] = field(default_factory=dict)
    categories: dict[str, int] = field(default_factory=dict)


def _referenced_groups(mapping: CategoryMappingDoc) -> list[str]:
    names: list[str] = []
    for entry in mapping.categories.values():
        match entry:
            case FullDescriptor(descriptor=d) if d.category_group:
                names.append(d.category_group)
            case _:
                pass
    names.extend(mapping.category_groups)
    return distinct(names)


def _descriptors_by_target(mapping: CategoryMappingDoc) -> dict[str, CategoryDescriptor]:
    by_target: dict[str, CategoryDescriptor] = {}
    for entry in mapping.categories.values():
        match entry:
            case FullDescriptor(descriptor=d):
                by_target.setdefault(d.category, d)
            case SimpleRename():
                pass
    return by_target


def plan_remote_categories(
    records: Records,
    mapping: CategoryMappingDoc,
    remote_categories: Sequence[RemoteCategory],
) -> CategoryCreationPlan:
    """Work out which groups and categories are missing remotely.

    The group/category namespace check runs first, so a conflict aborts
    before anything is created.
    """

    existing_groups, leaves = split_catalog(remote_categories)
    effective = distinct(r.dest_category_name for r in records if r.dest_category_name)
    existing_group_set = set(existing_groups)
    pending_groups = [g for g in _referenced_groups(mapping) if g not in existing_group_set]

    reconcile_group_conflicts(effective, existing_groups, pending_groups)

    known_leaves = set(leaves) | {UNCATEGORIZED}
    by_target = _descriptors_by_target(mapping)
    to_create = [
        by_target.get(name) or CategoryDescriptor(category=name)
        for name in effective
        if name not in known_leaves
    ]
    return CategoryCreationPlan(
        groups=tuple((g, mapping.group_descriptor(g)) for g in pending_groups),
        categories=tuple(to_create),
    )


def create_remote_categories(
    records: Records,
    mapping: CategoryMappingDoc,
    catalog: DestinationCatalog,
    *,
    plan: CategoryCreationPlan | None = None,
) -> CreatedCategories:
    """Create missing category groups, then missing leaf categories.

    Groups go first because a leaf in a group is created with the group's id.
    Names already present in the catalog are never recreated.
    """

    if plan is None:
        plan = plan_remote_categories(records, mapping, catalog.categories())

    current = catalog.categories()
    group_ids = {c.name: c.id for c in current if c.is_group}
    leaf_names = {c.name for c in current if not c.is_group}
    created = CreatedCategories()

    for name, gd in plan.groups:
        if name in group_ids:
            continue
        _logger.info("categories:create_group name=%s", name)
        group_ids[name] = created.groups[name] = catalog.create_category_group(
            name,
            is_income=gd.income,
            exclude_from_budget=gd.exclude_from_budget,
            exclude_from_totals=gd.exclude_from_totals,
        )

    for d in plan.categories:
        if d.category in leaf_names:
            continue
        group_id = group_ids.get(d.category_group) if d.category_group else None
        _logger.info("categories:create name=%s group=%s", d.category, d.category_group)
        created.categories[d.category] = catalog.create_category(
            d.category,
            group_id=group_id,
            is_income=d.income,
            exclude_from_budget=d.exclude_from_budget,
            exclude_from_totals=d.exclude_from_totals,
        )
        leaf_names.add(d.category)

    return created


def add_destination_category_ids(
    records: Records, remote_categories: Iterable[RemoteCategory]
) -> list[TransactionRecord]:
    """Attach the Lunch Money category id for each record's destination name."""

    by_name = {c.name: c.id for c in remote_categories if not c.is_group}
    out: list[TransactionRecord] = []
    for r in records:
        if r.dest_category_name == UNCATEGORIZED:
            _logger.info(
                "categories:uncategorized description=%s date=%s", r.description, r.date
            )
        out.append(replace(r, dest_category_id=by_name.get(r.dest_category_name or "")))
    return out


__all__ = [
    "generate_category_mapping",
    "resolve_categories",
    "reconcile_group_conflicts",
    "CategoryCreationPlan",
    "CreatedCategories",
    "plan_remote_categories",
    "create_remote_categories",
    "add_destination_category_ids",
]
