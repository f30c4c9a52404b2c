# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cleanup Report - The single result value of a cleanup run.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class DeleteFailure:
    """A delete attempt that did not succeed."""

    path: str
    cause: str

    def __str__(self) -> str:
        return f"{self.path}: {self.cause}"


@dataclass
class CleanupResult:
    """
    Result of a cleanup run.

    ``deleted_files`` is derived from ``deleted_paths`` so the two always
    agree, including for cancelled runs.
    """

    total_files: int = 0
    orphaned_files: int = 0
    errors: List[DeleteFailure] = field(default_factory=list)
    deleted_paths: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def deleted_files(self) -> int:
        return len(self.deleted_paths)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the field names used on the wire."""
        return {
            "totalFiles": self.total_files,
            "orphanedFiles": self.orphaned_files,
            "deletedFiles": self.deleted_files,
            "errors": [str(error) for error in self.errors],
            "deletedPaths": list(self.deleted_paths),
        }


class ReportBuilder:
    """Accumulates the counts and outcomes of one run."""

    def __init__(self) -> None:
        self._total_files = 0
        self._orphaned_files = 0
        self._errors: List[DeleteFailure] = []
        self._deleted_paths: List[str] = []
        self._cancelled = False

    def record_listing(self, total_files: int) -> None:
        self._total_files = total_files

    def record_orphans(self, orphaned_files: int) -> None:
        if orphaned_files > self._total_files:
            raise ValueError(
                f"orphaned_files ({orphaned_files}) cannot exceed total_files ({self._total_files})"
            )
        self._orphaned_files = orphaned_files

    def record_deleted(self, path: str) -> None:
        self._deleted_paths.append(path)

    def record_failure(self, path: str, cause: str) -> None:
        self._errors.append(DeleteFailure(path=path, cause=cause))

    def mark_cancelled(self) -> None:
        self._cancelled = True

    def build(self) -> CleanupResult:
        return CleanupResult(
            total_files=self._total_files,
            orphaned_files=self._orphaned_files,
            errors=list(self._errors),
            deleted_paths=list(self._deleted_paths),
            cancelled=self._cancelled,
        )
