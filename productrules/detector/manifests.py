"""Dependency manifest parsers.

Each parser reads one manifest and returns the declared dependency names
in file order. Unreadable or malformed manifests raise ExtractionError;
the dependency extractor records those as diagnostics and moves on.

Supported manifests:
  package.json              dependencies, devDependencies, peerDependencies
  *.csproj / *.props        <PackageReference Include=...>, <PackageVersion Include=...>
  packages.config           <package id=...>
  requirements.txt          bare requirement names
  pyproject.toml            [project] dependencies and [tool.poetry] tables
"""

import json
import logging
import re
import tomllib
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable

from productrules.errors import ExtractionError

logger = logging.getLogger(__name__)

_EXTRACTOR = "dependency"

# Strips version specifiers, extras, markers and URLs from a requirement
_REQUIREMENT_NAME = re.compile(r"[><=!~;@\[\s]")


def parse_package_json(path: Path) -> list[str]:
    data = _load_json(path)
    names: list[str] = []
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        block = data.get(section) or {}
        if not isinstance(block, dict):
            raise ExtractionError(_EXTRACTOR, str(path), f"'{section}' is not an object")
        names.extend(block.keys())
    return _unique(names)


def parse_msbuild_project(path: Path) -> list[str]:
    """Parse *.csproj, *.vbproj and Directory.Packages.props files.

    MSBuild files may or may not declare the msbuild namespace, so tags are
    compared by local name.
    """
    root = _load_xml(path)
    names: list[str] = []
    for element in root.iter():
        if _local_name(element.tag) in ("PackageReference", "PackageVersion"):
            name = element.get("Include") or element.get("Update")
            if name:
                names.append(name.strip())
    return _unique(names)


def parse_packages_config(path: Path) -> list[str]:
    root = _load_xml(path)
    names = [
        element.get("id", "").strip()
        for element in root.iter()
        if _local_name(element.tag) == "package"
    ]
    return _unique([n for n in names if n])


def parse_requirements(path: Path) -> list[str]:
    text = _read_text(path)
    names: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        # Skip comments, blank lines, and pip flags (-r, -c, --index-url, etc.)
        if not line or line.startswith("#") or line.startswith("-"):
            continue
        line = line.split("#")[0].strip()
        name = _REQUIREMENT_NAME.split(line)[0].strip()
        if name:
            names.append(name)
    return _unique(names)


def parse_pyproject(path: Path) -> list[str]:
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ExtractionError(_EXTRACTOR, str(path), f"unparseable TOML: {exc}") from exc

    names: list[str] = []

    # PEP 621: [project] dependencies + optional-dependencies
    project = _table(data, "project", path)
    for dep in _array(project, "dependencies", path):
        names.append(_REQUIREMENT_NAME.split(str(dep))[0].strip())
    optional = _table(project, "optional-dependencies", path)
    for extra in optional:
        for dep in _array(optional, extra, path):
            names.append(_REQUIREMENT_NAME.split(str(dep))[0].strip())

    # Poetry: [tool.poetry.dependencies] / [tool.poetry.group.*.dependencies]
    poetry = _table(_table(data, "tool", path), "poetry", path)
    names.extend(_table(poetry, "dependencies", path).keys())
    names.extend(_table(poetry, "dev-dependencies", path).keys())
    groups = _table(poetry, "group", path)
    for group in groups:
        names.extend(_table(_table(groups, group, path), "dependencies", path).keys())

    return _unique([n for n in names if n and n.lower() != "python"])


def parser_for(filename: str) -> Callable[[Path], list[str]] | None:
    """Return the parser for a manifest file name, or None if unsupported."""
    lowered = filename.lower()
    if lowered == "package.json":
        return parse_package_json
    if lowered.endswith((".csproj", ".vbproj", ".fsproj")) or lowered == "directory.packages.props":
        return parse_msbuild_project
    if lowered == "packages.config":
        return parse_packages_config
    if lowered == "requirements.txt":
        return parse_requirements
    if lowered == "pyproject.toml":
        return parse_pyproject
    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExtractionError(_EXTRACTOR, str(path), f"unreadable: {exc}") from exc


def _load_json(path: Path) -> dict:
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise ExtractionError(_EXTRACTOR, str(path), f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionError(_EXTRACTOR, str(path), "top-level value is not an object")
    return data


def _load_xml(path: Path) -> ET.Element:
    try:
        return ET.fromstring(_read_text(path))
    except ET.ParseError as exc:
        raise ExtractionError(_EXTRACTOR, str(path), f"invalid XML: {exc}") from exc


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _unique(names: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            result.append(name)
    return result


def _table(parent: dict, key: str, path: Path) -> dict:
    value = parent.get(key, {})
    if not isinstance(value, dict):
        raise ExtractionError(_EXTRACTOR, str(path), f"'{key}' is not a table")
    return value


def _array(parent: dict, key: str, path: Path) -> list:
    value = parent.get(key, [])
    if not isinstance(value, list):
        raise ExtractionError(_EXTRACTOR, str(path), f"'{key}' is not an array")
    return value
