"""Exceptions raised by depcheck."""

from typing import List, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PackageId


class DepcheckError(Exception):
    """Base class for all depcheck errors."""


class LockFileError(DepcheckError):
    """The lock file could not be read or is not in a supported format."""


class UnresolvedReferenceError(DepcheckError):
    """
    One or more dependency references do not match any package record.

    Attributes:
        references: (dependent, missing dependency) pairs, in input order
    """

    def __init__(self, references: Sequence[Tuple['PackageId', 'PackageId']]):
        self.references: List[Tuple['PackageId', 'PackageId']] = list(references)
        lines = [f"  {dependent} -> {missing}" for dependent, missing in self.references]
        super().__init__(
            f"Corrupted lock file: {len(self.references)} unresolved dependency reference(s):\n"
            + '\n'.join(lines)
        )


class CycleDetectedError(DepcheckError):
    """
    An upward walk found a dependency cycle.

    Attributes:
        path: The cycle, starting and ending with the same package
    """

    def __init__(self, path: Sequence['PackageId']):
        self.path: List['PackageId'] = list(path)
        super().__init__(
            "Dependency cycle detected: " + ' <- '.join(str(pid) for pid in self.path)
        )
