"""
OData filter clause helpers for NuGet v2 feeds.

Name patterns and version ranges are translated into ``$filter`` fragments;
the catalog service evaluates them, nothing here compares versions or names.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Tuple

from gallery_v2.domain.exceptions import UnsupportedPatternError
from gallery_v2.domain.models import VersionRange
from gallery_v2.domain.versions import normalize_version

logger = logging.getLogger(__name__)

WILDCARD = "*"

ALL_NAMES_MESSAGE = "We don't support -Name *"
SUPPORTED_SHAPES_MESSAGE = (
    "We only support wildcards for scenarios similar to the following examples: "
    "PowerShell*, *ShellGet, Power*Get, *Shell*."
)


class NamePatternKind(str, Enum):
    CONTAINS = "contains"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    PREFIX_AND_SUFFIX = "prefix_and_suffix"
    UNSUPPORTED = "unsupported"


def odata_literal(value: str) -> str:
    """Quote a value as an OData string literal."""
    return "'" + value.replace("'", "''") + "'"


def join_clauses(*clauses: Optional[str]) -> str:
    """
    AND-join filter clauses in the given order, skipping empty ones.
    """
    return " and ".join(c for c in clauses if c)


def classify_name_pattern(pattern: str) -> Tuple[NamePatternKind, List[str]]:
    """
    Classify a wildcard name pattern by the position of its '*' markers.

    Returns the pattern kind and its non-empty segments.
    """
    segments = [s for s in pattern.split(WILDCARD) if s]
    leading = pattern.startswith(WILDCARD)
    trailing = pattern.endswith(WILDCARD)

    if len(segments) == 1:
        if leading and trailing:
            return NamePatternKind.CONTAINS, segments
        if trailing:
            return NamePatternKind.PREFIX, segments
        if leading:
            return NamePatternKind.SUFFIX, segments
    elif len(segments) == 2 and not leading and not trailing:
        return NamePatternKind.PREFIX_AND_SUFFIX, segments

    return NamePatternKind.UNSUPPORTED, segments


def name_filter(pattern: str, field: str = "Id") -> str:
    """
    Translate a wildcard name pattern into a filter clause on ``field``.

    Raises:
        UnsupportedPatternError: If the pattern shape cannot be expressed.
    """
    kind, segments = classify_name_pattern(pattern)

    if kind == NamePatternKind.CONTAINS:
        return f"substringof({odata_literal(segments[0])}, {field})"
    if kind == NamePatternKind.PREFIX:
        return f"startswith({field}, {odata_literal(segments[0])})"
    if kind == NamePatternKind.SUFFIX:
        return f"endswith({field}, {odata_literal(segments[0])})"
    if kind == NamePatternKind.PREFIX_AND_SUFFIX:
        return join_clauses(
            f"startswith({field}, {odata_literal(segments[0])})",
            f"endswith({field}, {odata_literal(segments[1])})",
        )

    message = ALL_NAMES_MESSAGE if not segments else SUPPORTED_SHAPES_MESSAGE
    logger.warning(f"Rejected name pattern {pattern!r}: {message}")
    raise UnsupportedPatternError(pattern, message)


def version_range_filter(version_range: Optional[VersionRange], field: str = "NormalizedVersion") -> str:
    """
    Translate a version interval into comparator clauses on ``field``.

    Lower bound first; an unbounded range yields an empty string.
    """
    if version_range is None:
        return ""

    lower = ""
    upper = ""
    if version_range.min_version is not None:
        op = "ge" if version_range.is_min_inclusive else "gt"
        lower = f"{field} {op} {odata_literal(normalize_version(version_range.min_version))}"
    if version_range.max_version is not None:
        op = "le" if version_range.is_max_inclusive else "lt"
        upper = f"{field} {op} {odata_literal(normalize_version(version_range.max_version))}"

    return join_clauses(lower, upper)


def type_tag_filter(tag_name: str) -> str:
    """Substring test of a resource type tag against the Tags field."""
    return f"substringof({odata_literal(tag_name)}, Tags) eq true"
