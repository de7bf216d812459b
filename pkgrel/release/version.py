"""Shared manifest version: parsing, bumping and rewriting.

The manifest is a JSON object (``package.json``) whose ``version`` field is a
dotted ``major.minor.patch`` string. Every package is released at that one
version.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.result import Err, Ok, Result
from pkgrel.core.structured import StrDict, as_str_dict
from pkgrel.platform.files import atomic_write_text
from pkgrel.release.errors import ReleaseError

__all__ = [
    "Version",
    "parse_version",
    "read_manifest",
    "read_manifest_version",
    "write_manifest_version",
]

_VERSION_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)$")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def bump_minor(self) -> Version:
        """Next minor release: major kept, minor + 1, patch reset."""
        return Version(self.major, self.minor + 1, 0)

    def to_tag(self) -> str:
        return f"v{self}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> Result[Version, ReleaseError]:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid version: {text!r}",
                hint="Expected three numeric components, e.g. 1.4.0",
            )
        )
    return Ok(Version(int(m.group(1)), int(m.group(2)), int(m.group(3))))


def read_manifest(path: Path) -> Result[StrDict, ReleaseError]:
    """Load the manifest as a JSON object."""
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ReleaseError(kind="invalid_manifest", message=f"manifest not found: {path}"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=f"failed to read manifest: {path}",
                hint=str(e),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=f"manifest root must be an object: {path}",
            )
        )
    return Ok(data)


def read_manifest_version(path: Path) -> Result[Version, ReleaseError]:
    manifest = read_manifest(path)
    if isinstance(manifest, Err):
        return manifest

    raw = manifest.value.get("version")
    if not isinstance(raw, str):
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=f"manifest has no string 'version' field: {path}",
            )
        )
    return parse_version(raw)


def write_manifest_version(path: Path, version: Version) -> Result[None, ReleaseError]:
    """Replace the manifest's version field, keeping every other key in order."""
    manifest = read_manifest(path)
    if isinstance(manifest, Err):
        return manifest

    payload = dict(manifest.value)
    payload["version"] = str(version)
    try:
        atomic_write_text(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=f"failed to write manifest: {path}",
                hint=str(e),
            )
        )
    return Ok(None)
