"""Package discovery and descriptor reading for app store checkouts."""

from __future__ import annotations

import json
from pathlib import Path

from appsync.errors import DescriptorReadError
from appsync.schema import DESCRIPTOR_SCHEMA, validate_document
from appsync.sync.models import PackageDescriptor

DESCRIPTOR_FILE = "config.json"

# Shared definitions that live next to the packages but are not packages
IGNORED_SUFFIXES = (".common.yml",)


def list_packages(apps_dir: Path) -> list[str]:
    """Return the sorted package names under an ``apps/`` directory.

    Only directories count. Hidden entries (``.DS_Store``, ``.git``) and
    shared ``*.common.yml`` definitions are excluded. A missing directory
    yields no packages.
    """
    if not apps_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in apps_dir.iterdir()
        if entry.is_dir() and _is_package_name(entry.name)
    )


def _is_package_name(name: str) -> bool:
    if name.startswith("."):
        return False
    return not name.endswith(IGNORED_SUFFIXES)


def read_descriptor(package_dir: Path) -> PackageDescriptor:
    """Read and validate ``config.json`` inside a package directory.

    Raises:
        DescriptorReadError: If the file is missing, is not valid JSON, or
            lacks one of the required fields.
    """
    path = package_dir / DESCRIPTOR_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise DescriptorReadError(path, "file not found") from None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DescriptorReadError(path, str(e)) from e

    issues = validate_document(data, DESCRIPTOR_SCHEMA)
    if issues:
        raise DescriptorReadError(path, "; ".join(issues))

    return PackageDescriptor(
        id=data["id"],
        version=data["version"],
        revision=data["tipi_version"],
        updated_at=data["updated_at"],
    )


def descriptor_reader(apps_dir: Path):
    """Return a name-based reader bound to one ``apps/`` directory."""

    def read(name: str) -> PackageDescriptor:
        return read_descriptor(apps_dir / name)

    return read
