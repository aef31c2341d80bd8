"""Version parsing utilities for ordering package versions."""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class VersionInfo:
    """
    Parsed version information.

    Attributes:
        original_string: The original version string as-is
        is_semver: Whether the string follows semantic versioning
        major, minor, patch: Numeric release components (semver only)
        pre_release: Pre-release identifiers, e.g. ('alpha', '1') for 1.0.0-alpha.1
        build: Build metadata after '+', ignored for ordering
    """
    original_string: str
    is_semver: bool = False
    major: int = 0
    minor: int = 0
    patch: int = 0
    pre_release: Tuple[str, ...] = field(default_factory=tuple)
    build: Optional[str] = None


def _identifier_key(part: str) -> Tuple[int, object]:
    # Numeric identifiers sort before alphanumeric ones (semver rule 11.4.3)
    if part.isascii() and part.isdigit():
        return (0, int(part))
    return (1, part)


class VersionParser:
    """Parser for semantic and loosely structured version strings."""

    # MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]
    SEMVER_PATTERN = re.compile(
        r'^(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)'   # Release triple
        r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'              # Pre-release
        r'(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'            # Build metadata
    )

    @classmethod
    def parse(cls, version: str) -> VersionInfo:
        """
        Parse a version string.

        Args:
            version: The version string to parse

        Returns:
            VersionInfo; is_semver is False when the string is not semver
        """
        match = cls.SEMVER_PATTERN.match(version)
        if match:
            pre_release = tuple(match.group(4).split('.')) if match.group(4) else ()
            return VersionInfo(
                original_string=version,
                is_semver=True,
                major=int(match.group(1)),
                minor=int(match.group(2)),
                patch=int(match.group(3)),
                pre_release=pre_release,
                build=match.group(5)
            )

        return VersionInfo(original_string=version)

    @classmethod
    def sort_key(cls, version: str) -> tuple:
        """
        Get a key that orders versions by precedence.

        Semver strings follow semver precedence (a pre-release sorts before its
        release). Anything else is split on '.' and '-' and compared part by
        part, numbers numerically, and sorts after every semver string.

        Args:
            version: The version string

        Returns:
            A tuple usable with sorted()
        """
        info = cls.parse(version)
        if info.is_semver:
            if info.pre_release:
                pre = (0, tuple(_identifier_key(p) for p in info.pre_release))
            else:
                pre = (1, ())
            # Build metadata has no precedence; keep it last so the order is total
            return (0, info.major, info.minor, info.patch, pre, info.build or '')

        parts = tuple(_identifier_key(p) for p in re.split(r'[.\-]', version))
        return (1, parts)

    @classmethod
    def compare(cls, v1: str, v2: str) -> int:
        """Compare two versions. Returns >0 if v1 > v2, <0 if v1 < v2, 0 if equal."""
        k1 = cls.sort_key(v1)
        k2 = cls.sort_key(v2)
        return (k1 > k2) - (k1 < k2)
