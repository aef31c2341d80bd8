"""Lock file parsers for Cargo.lock and generic JSON package lists."""

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests
import toml

from .exceptions import LockFileError
from .models import PackageRecord

logger = logging.getLogger(__name__)

SUPPORTED_CARGO_LOCK_VERSIONS = (3, 4)


def _is_url(path: str) -> bool:
    """Check if a path is a URL."""
    try:
        result = urlparse(path)
        return result.scheme in ('http', 'https')
    except ValueError:
        return False


def _read_content(path: str) -> str:
    """
    Read content from either a file path or URL.

    Args:
        path: File path or URL

    Returns:
        Content as string

    Raises:
        LockFileError: If the file or URL cannot be read
    """
    try:
        if _is_url(path):
            logger.info(f"Fetching content from URL: {path}")
            response = requests.get(path, timeout=30)
            response.raise_for_status()
            return response.text
        else:
            logger.info(f"Reading content from file: {path}")
            with open(path, 'r') as f:
                return f.read()
    except (OSError, requests.RequestException) as e:
        raise LockFileError(f"Cannot read {path}: {e}") from e


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _split_dependency(entry: str) -> Tuple[str, Optional[str]]:
    """
    Split a Cargo.lock dependency string into name and version.

    Accepted forms are "name", "name version" and "name version (source)".
    """
    if not isinstance(entry, str):
        raise LockFileError(f"Dependency reference must be a string: {entry!r}")
    parts = entry.strip().split(' ', 2)
    name = parts[0]
    version = parts[1] if len(parts) > 1 else None
    if not name:
        raise LockFileError(f"Empty dependency reference: '{entry}'")
    return name, version


class LockFileParser:
    """Parser for lock files."""

    @staticmethod
    def parse_cargo_lock(content: str) -> List[PackageRecord]:
        """
        Parse Cargo.lock content into package records.

        A dependency given by name only refers to the single package of that
        name. A name with no package at all is kept with an empty version so
        the graph builder reports it as unresolved.

        Args:
            content: Cargo.lock text

        Returns:
            Package records in lock file order

        Raises:
            LockFileError: If the TOML is invalid, the lock file version is not
                supported, an entry is malformed, or a bare dependency name is
                ambiguous
        """
        try:
            data = toml.loads(content)
        except toml.TomlDecodeError as e:
            raise LockFileError(f"Invalid TOML format: {e}") from e

        lock_version = data.get('version')
        if lock_version not in SUPPORTED_CARGO_LOCK_VERSIONS:
            supported = ', '.join(f"v{v}" for v in SUPPORTED_CARGO_LOCK_VERSIONS)
            raise LockFileError(
                f"Unsupported Cargo.lock version {lock_version!r}; only {supported} lock files are supported"
            )

        packages: List[Dict[str, Any]] = data.get('package', [])
        if not isinstance(packages, list):
            raise LockFileError("Cargo.lock 'package' entry must be an array of tables")

        # Versions per name, for resolving bare "name" references
        versions_by_name: Dict[str, List[str]] = defaultdict(list)
        for package in packages:
            if not isinstance(package, dict):
                raise LockFileError(f"Package entry must be a table: {package!r}")
            name = package.get('name')
            version = package.get('version')
            if not _is_name(name) or not _is_name(version):
                raise LockFileError(f"Package entry needs a string name and version: {package}")
            if not isinstance(package.get('dependencies', []), list):
                raise LockFileError(f"Dependencies of {name} {version} must be an array")
            versions_by_name[name].append(version)

        records = []
        for package in packages:
            dependencies = []
            for entry in package.get('dependencies', []):
                dep_name, dep_version = _split_dependency(entry)
                if dep_version is None:
                    candidates = versions_by_name.get(dep_name, [])
                    if len(candidates) > 1:
                        raise LockFileError(
                            f"Ambiguous dependency '{dep_name}' in {package['name']} {package['version']}: "
                            f"{len(candidates)} versions in lock file"
                        )
                    dep_version = candidates[0] if candidates else ''
                dependencies.append((dep_name, dep_version))

            records.append(PackageRecord(
                name=package['name'],
                version=package['version'],
                source=package.get('source'),
                dependencies=dependencies,
                checksum=package.get('checksum')
            ))

        logger.info(f"Parsed {len(records)} packages from Cargo.lock (v{lock_version})")
        return records

    @staticmethod
    def parse_json_records(content: str) -> List[PackageRecord]:
        """
        Parse a JSON package list.

        The document is either a list of packages or an object with a
        "packages" list. Each package has "name", "version", an optional
        "source" and "dependencies" given as [name, version] pairs or
        {"name": ..., "version": ...} objects.

        Raises:
            LockFileError: If the JSON is invalid or a package is malformed
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise LockFileError(f"Invalid JSON format: {e}") from e

        if isinstance(data, dict):
            data = data.get('packages', [])
        if not isinstance(data, list):
            raise LockFileError("JSON package list must be an array or an object with a 'packages' array")

        records = []
        for package in data:
            if not isinstance(package, dict):
                raise LockFileError(f"Malformed package entry {package!r}: expected an object")
            name = package.get('name')
            version = package.get('version')
            if not _is_name(name) or not _is_name(version):
                raise LockFileError(
                    f"Malformed package entry {package!r}: name and version must be non-empty strings"
                )

            entries = package.get('dependencies', [])
            if not isinstance(entries, list):
                raise LockFileError(f"Malformed package entry {package!r}: dependencies must be an array")

            dependencies = []
            for dep in entries:
                if isinstance(dep, dict):
                    pair = (dep.get('name'), dep.get('version'))
                elif isinstance(dep, list) and len(dep) == 2:
                    pair = (dep[0], dep[1])
                else:
                    raise LockFileError(
                        f"Malformed dependency {dep!r} of {name} {version}: "
                        f"expected a [name, version] pair or a name/version object"
                    )
                if not _is_name(pair[0]) or not isinstance(pair[1], str):
                    raise LockFileError(
                        f"Malformed dependency {dep!r} of {name} {version}: name and version must be strings"
                    )
                dependencies.append(pair)

            records.append(PackageRecord(
                name=name,
                version=version,
                source=package.get('source'),
                dependencies=dependencies,
                checksum=package.get('checksum')
            ))

        logger.info(f"Parsed {len(records)} packages from JSON package list")
        return records

    @staticmethod
    def detect_format(file_path: str) -> str:
        """Detect the input format from the file name ('cargo' or 'json')."""
        name = Path(urlparse(file_path).path if _is_url(file_path) else file_path).name.lower()
        if name.endswith('.json'):
            return 'json'
        if name == 'cargo.lock' or name.endswith('.lock') or name.endswith('.toml'):
            return 'cargo'
        logger.debug(f"Unknown lock file name '{name}', assuming Cargo.lock format")
        return 'cargo'

    @staticmethod
    def load(path: str, input_format: Optional[str] = None) -> List[PackageRecord]:
        """
        Read and parse a lock file from a path or URL.

        Args:
            path: File path or http(s) URL
            input_format: 'cargo' or 'json'; detected from the name when omitted

        Returns:
            Package records
        """
        detected = input_format or LockFileParser.detect_format(path)
        logger.info(f"Input: {path} (format={detected})")
        content = _read_content(path)

        if detected == 'cargo':
            return LockFileParser.parse_cargo_lock(content)
        if detected == 'json':
            return LockFileParser.parse_json_records(content)
        raise LockFileError(f"Unknown input format: {detected}")
