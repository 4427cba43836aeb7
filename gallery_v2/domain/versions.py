"""
NuGet version normalization.

The v2 feed exposes a ``NormalizedVersion`` field that range and equality
clauses compare against, so bounds must be rendered in the same form.
"""

from __future__ import annotations

import re

_VERSION_RE = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+){0,3})"
    r"(?:-(?P<release>[0-9A-Za-z][0-9A-Za-z.-]*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z][0-9A-Za-z.-]*))?$"
)


def normalize_version(version: str) -> str:
    """
    Return the NuGet normalized form of a version string.

    Leading zeros are dropped from numeric components, at least three
    components are always emitted, the fourth (revision) component is kept only
    when non-zero, the prerelease label is kept and build metadata is dropped.

        '1.0'           -> '1.0.0'
        '1.0.0.0'       -> '1.0.0'
        '01.2.3.4'      -> '1.2.3.4'
        '2.0.0-beta1+x' -> '2.0.0-beta1'

    Raises:
        ValueError: If the string is not a valid version.
    """
    match = _VERSION_RE.match((version or "").strip())
    if match is None:
        raise ValueError(f"Invalid version: {version!r}")

    numbers = [int(part) for part in match.group("numbers").split(".")]
    while len(numbers) < 3:
        numbers.append(0)
    if len(numbers) == 4 and numbers[3] == 0:
        numbers.pop()

    normalized = ".".join(str(n) for n in numbers)
    if match.group("release"):
        normalized += f"-{match.group('release')}"
    return normalized


def is_valid_version(version: str) -> bool:
    return _VERSION_RE.match((version or "").strip()) is not None
