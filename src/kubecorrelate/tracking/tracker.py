#!/usr/bin/env python3
"""
KUBECORRELATE MATCH STATISTICS TRACKER
--------------------------------------
Thread-safe accumulator of which templates were used and which records
matched nothing. The two aggregates are guarded by separate locks.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import threading
from typing import List, Sequence, Set, Type

from kubecorrelate.core.models import Record, Template, identity


class MatchStatisticsTracker:

    def __init__(self):
        self._matched_names: Set[str] = set()
        self._matched_lock = threading.Lock()
        self._unmatched: List[Record] = []
        self._unmatched_lock = threading.Lock()

    def add_match(self, template: Template):
        with self._matched_lock:
            self._matched_names.add(template.name)

    def add_unmatched(self, record: Record):
        with self._unmatched_lock:
            self._unmatched.append(record)

    # Readers run after every writer has finished.

    @property
    def matched_template_names(self) -> Set[str]:
        with self._matched_lock:
            return set(self._matched_names)

    @property
    def unmatched_records(self) -> List[Record]:
        with self._unmatched_lock:
            return list(self._unmatched)

    def unmatched_identities(self) -> List[str]:
        return [identity(r) for r in self.unmatched_records]


def contains_only(error: BaseException, kinds: Sequence[Type[BaseException]]) -> bool:
    """
    True when the error, or every part of a combined error, is an instance
    of one of `kinds`.
    """
    parts = error.parts() if hasattr(error, "parts") else [error]
    return all(isinstance(part, tuple(kinds)) for part in parts)
