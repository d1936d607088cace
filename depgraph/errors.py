"""Exceptions raised by the dependency graph and its collaborators.

Hierarchy:
    DependencyError
    ├─ InvalidArgumentError (empty unit name or trace argument)
    ├─ CycleDetectedError (edge rejected by the inline cycle guard)
    ├─ NotFoundError (offender missing from a cycle route)
    ├─ RootScanError (a single source root could not be scanned)
    └─ RootScanFailedError (every failing root of a build, combined)
"""

from pathlib import Path
from typing import List, Sequence, Union


class DependencyError(Exception):
    """Base exception for dependency graph failures."""


class InvalidArgumentError(DependencyError, ValueError):
    """A unit name or trace argument was empty."""


class CycleDetectedError(DependencyError):
    """
    Raised when an inserted edge would close a dependency cycle.

    Attributes:
        trace: The minimal cycle, e.g. ``"a -> b -> a"``.
    """

    def __init__(self, trace: str):
        super().__init__(f"dependency cycle detected: {trace}")
        self.trace = trace


class NotFoundError(DependencyError, LookupError):
    """The offending unit does not occur in the given route."""


class RootScanError(DependencyError):
    """
    A source root could not be scanned.

    Attributes:
        root: The root that failed.
        reason: Human readable cause.
    """

    def __init__(self, root: Union[str, Path], reason: str):
        super().__init__(f"{root}: {reason}")
        self.root = root
        self.reason = reason


class RootScanFailedError(DependencyError):
    """
    One or more roots failed to scan.

    Raised only after every root has been attempted.

    Attributes:
        failures: The individual errors, one per failing root.
    """

    def __init__(self, failures: Sequence[RootScanError]):
        self.failures: List[RootScanError] = list(failures)
        details = "; ".join(str(f) for f in self.failures)
        super().__init__(f"{len(self.failures)} root(s) failed to scan: {details}")

    @property
    def roots(self) -> List[Union[str, Path]]:
        """Return the roots that failed, in the order they were reported."""
        return [f.root for f in self.failures]
