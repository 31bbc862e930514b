"""Version precedence for app package descriptors.

Versions are compared as dotted sequences of non-negative integers. A
component that is not purely numeric (``"rc1"``, ``"0-beta"``) reads as
``0``; pre-release and build-metadata qualifiers are not interpreted, so
``"1.0.0-rc1"`` and ``"1.0.0"`` compare equal.
"""

from __future__ import annotations


def parse_component(component: str) -> int:
    """Return the integer value of a single version component."""
    component = component.strip()
    if component.isascii() and component.isdigit():
        return int(component)
    return 0


def parse_version(version: str) -> list[int]:
    """Split a dotted version string into integer components."""
    return [parse_component(part) for part in version.split(".")]


def compare_versions(v1: str, v2: str) -> int:
    """Compare two dotted version strings.

    Returns:
        ``1`` if *v1* is newer, ``-1`` if *v2* is newer, ``0`` if equal.
        Missing trailing components count as ``0``, so ``"1.2"`` equals
        ``"1.2.0"``.
    """
    parts1 = parse_version(v1)
    parts2 = parse_version(v2)

    for i in range(max(len(parts1), len(parts2))):
        p1 = parts1[i] if i < len(parts1) else 0
        p2 = parts2[i] if i < len(parts2) else 0
        if p1 > p2:
            return 1
        if p1 < p2:
            return -1
    return 0
