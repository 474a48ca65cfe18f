#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import re
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from packaging.version import InvalidVersion, Version

from . import registries

logger = logging.getLogger(__name__)

# <label>-<major>.<minor> or <label>-main, the label capture is greedy
KERNEL_TAG_REGEX = re.compile(r"^(.+)-([0-9]+\.[0-9]+|main)$")

# obsolete tags still published alongside the current ones
OBSOLETE_LABEL_MARKER = "-latest"

Catalog = Dict[str, List[str]]


class TagMatch(NamedTuple):
    label: str
    tag: str


class VersionNotFoundError(LookupError):
    """
    Raised when a logical version is not part of the catalog.

    Attributes:
        version (str): The requested version
        versions (frozenset): Every version the catalog does know
    """

    def __init__(self, version: str, versions: Iterable[str]):
        self.version = version
        self.versions = frozenset(versions)
        super().__init__(f"kernel version not found, try: {sorted(self.versions, key=version_sort_key)}")


def classify_tag(tag: str) -> Optional[TagMatch]:
    """
    Match a raw tag against the kernel image naming convention.

    Tags that do not match in full, and tags whose label contains "-latest",
    yield None. Neither case is an error.

    Parameters:
        tag (str): Raw tag as listed by the registry

    Returns:
        Optional[TagMatch]: (label, full tag) or None
    """
    match = KERNEL_TAG_REGEX.match(tag)
    if not match:
        return None

    label = match.group(1)
    if OBSOLETE_LABEL_MARKER in label:
        return None

    return TagMatch(label=label, tag=match.group(0))


def build_catalog(raw_tags: Iterable[str]) -> Catalog:
    """
    Group raw tags by logical version.

    Buckets keep the arrival order of their tags and duplicates are kept.

    Parameters:
        raw_tags (Iterable[str]): Raw tags, consumed once

    Returns:
        Catalog: Mapping of logical version to tags
    """
    catalog: Catalog = {}
    discarded = 0

    for tag in raw_tags:
        tag_match = classify_tag(tag)
        if tag_match is None:
            discarded += 1
            continue
        catalog.setdefault(tag_match.label, []).append(tag_match.tag)

    logger.debug(
        f"Catalog holds {sum(len(tags) for tags in catalog.values())} tags in {len(catalog)} versions, {discarded} tags discarded",
        extra={"indent": 2},
    )
    return catalog


def version_sort_key(label: str):
    """
    Sort key ordering logical versions by semantic version.

    Numeric components compare numerically ("6.12" after "6.6"). Labels that
    are not versions ("bpf-next") come first, in lexical order. Equal versions
    ("6.6", "6.6.0") fall back to the label itself, so the order is total.
    """
    try:
        return (1, Version(label), label)
    except InvalidVersion:
        return (0, label)


def lexical_sort_key(tag: str) -> str:
    """Sort key ordering tags by plain codepoint comparison."""
    return tag


def list_versions(catalog: Catalog) -> List[str]:
    """
    Return every logical version of the catalog, ascending.

    Parameters:
        catalog (Catalog): Catalog built by build_catalog

    Returns:
        List[str]: Logical versions, the most recent last
    """
    return sorted(catalog, key=version_sort_key)


def list_tags(catalog: Catalog, version: str) -> List[str]:
    """
    Return the tags of one logical version in lexical order.

    Build counters are not compared numerically: "6.6-10" sorts before "6.6-2".

    Parameters:
        catalog (Catalog): Catalog built by build_catalog
        version (str): Logical version, e.g. "6.6" or "bpf-next"

    Returns:
        List[str]: A sorted copy of the version's tags

    Raises:
        VersionNotFoundError: If the version is not in the catalog
    """
    if version not in catalog:
        raise VersionNotFoundError(version, catalog.keys())
    return sorted(catalog[version], key=lexical_sort_key)


def query_catalog(repository: str, version: Optional[str] = None,
                  list_tags_fn: Optional[Callable[[str], List[str]]] = None) -> List[str]:
    """
    Fetch the tags of a repository and project the requested view.

    Without a version this lists the logical versions; with one it lists
    the tags of that version. Registry errors are not caught here.

    Parameters:
        repository (str): Repository reference passed to the registry client
        version (str): Optional logical version
        list_tags_fn (Callable): Replacement for the registry client

    Returns:
        List[str]: Versions or tags, ascending

    Raises:
        VersionNotFoundError: If the version is not in the catalog
    """
    if list_tags_fn is None:
        list_tags_fn = registries.list_tags

    catalog = build_catalog(list_tags_fn(repository))
    if version is None:
        return list_versions(catalog)
    return list_tags(catalog, version)
