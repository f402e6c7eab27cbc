#!/usr/bin/env python3
"""
KUBECORRELATE ENGINE - The Orchestrator
---------------------------------------
The CompareEngine drives every observed record through the same three
steps on a bounded worker pool:

1. Correlation chain lookup (exact-pair override, then structural fields)
2. Best-candidate selection through the diff-size oracle
3. A single update of the match statistics tracker

Correlators and templates are built once before fan-out and only read
afterwards. A correlation failure never stops the other records; an oracle
failure aborts the run.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from kubecorrelate.core.errors import UnknownMatch
from kubecorrelate.core.models import Record, Template, identity
from kubecorrelate.correlation.chain import CorrelationChain, build_correlation_chain
from kubecorrelate.correlation.structural import DEFAULT_FIELD_GROUPS
from kubecorrelate.loaders.config import UserConfig
from kubecorrelate.loaders.templates import Reference
from kubecorrelate.oracle.differ import LocalDiffOracle
from kubecorrelate.report.summary import CompareOutput, DiffSum, Summary
from kubecorrelate.selection.selector import DiffOracle, Selection, select_best_candidate
from kubecorrelate.tracking.tracker import MatchStatisticsTracker, contains_only

logger = logging.getLogger("kubecorrelate.engine")

DEFAULT_CONCURRENCY = 4


@dataclass
class RecordOutcome:
    """What happened to one record. `selection` is None when nothing matched."""
    record: Record
    selection: Optional[Selection] = None
    error: Optional[Exception] = None

    @property
    def matched(self) -> bool:
        return self.selection is not None


class CompareEngine:
    """
    Principal orchestrator for correlating observed records with reference
    templates.
    """

    def __init__(self, templates: Sequence[Template], oracle: DiffOracle,
                 overrides: Optional[Mapping[str, str]] = None,
                 field_groups: Sequence = DEFAULT_FIELD_GROUPS,
                 concurrency: int = DEFAULT_CONCURRENCY,
                 diff_all: bool = False):
        try:
            concurrency = int(concurrency)
        except (ValueError, TypeError):
            logger.warning(f"Invalid concurrency '{concurrency}'. Falling back to default: {DEFAULT_CONCURRENCY}")
            concurrency = DEFAULT_CONCURRENCY

        self.templates = list(templates)
        self.oracle = oracle
        self.concurrency = max(1, concurrency)
        self.diff_all = diff_all
        self.chain: CorrelationChain = build_correlation_chain(self.templates, overrides, field_groups)
        self.tracker = MatchStatisticsTracker()

    @classmethod
    def from_reference(cls, reference: Reference, user_config: Optional[UserConfig] = None,
                       **options) -> "CompareEngine":
        """Builds an engine using the local diff oracle for a loaded reference."""
        overrides = user_config.correlation_pairs if user_config else None
        oracle = LocalDiffOracle(reference.fields_to_omit)
        return cls(reference.templates, oracle, overrides=overrides, **options)

    def process_record(self, record: Record) -> RecordOutcome:
        """
        One unit of work. Correlation failures are classified and returned;
        oracle failures propagate after the record is tracked as unmatched.
        """
        try:
            candidates = self.chain.match(record)
        except Exception as e:
            # Plain misses are only reported when every record must match
            if self.diff_all or not contains_only(e, [UnknownMatch]):
                self.tracker.add_unmatched(record)
            logger.debug(f"No template for {identity(record)}: {e}")
            return RecordOutcome(record=record, error=e)

        try:
            selection = select_best_candidate(candidates, record, self.oracle)
        except Exception:
            self.tracker.add_unmatched(record)
            raise

        self.tracker.add_match(selection.template)
        return RecordOutcome(record=record, selection=selection)

    def run(self, records: Iterable[Record]) -> List[RecordOutcome]:
        """
        Fans records out to at most `concurrency` workers. On the first
        fatal error pending work is cancelled, in-flight work is drained and
        the error is raised.
        """
        outcomes: List[RecordOutcome] = []
        executor = ThreadPoolExecutor(max_workers=self.concurrency)
        try:
            futures = [executor.submit(self.process_record, r) for r in records]
            for future in as_completed(futures):
                outcomes.append(future.result())
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return outcomes

    def compare(self, records: Iterable[Record]) -> CompareOutput:
        """Runs the records and assembles the report for the summary consumer."""
        outcomes = self.run(records)
        diffs = [
            DiffSum(
                record_identity=identity(o.record),
                correlated_template=o.selection.template.name,
                diff_output=o.selection.diff_text,
            )
            for o in outcomes if o.matched
        ]
        skipped = sum(1 for o in outcomes if not o.matched)
        if skipped:
            logger.info(f"{skipped} record(s) didn't correlate to any template")

        num_diffs = sum(1 for d in diffs if d.has_diff())
        summary = Summary.build(self.tracker, num_diffs, (t.name for t in self.templates))
        return CompareOutput(summary=summary, diffs=diffs)
