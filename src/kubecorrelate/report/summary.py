#!/usr/bin/env python3
"""
KUBECORRELATE REPORT MODELS
---------------------------
Per-record diff results and the run summary consumed by the exporter.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from kubecorrelate.tracking.tracker import MatchStatisticsTracker

DIFF_SEPARATOR = "**********************************\n"


@dataclass
class DiffSum:
    """The diff output and correlation info of a single record."""
    record_identity: str
    correlated_template: str
    diff_output: str = ""

    def has_diff(self) -> bool:
        return self.diff_output != ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "CRName": self.record_identity,
            "CorrelatedTemplate": self.correlated_template,
            "DiffOutput": self.diff_output,
        }

    def render(self) -> str:
        lines = [
            f"Cluster CR: {self.record_identity}",
            f"Reference File: {self.correlated_template}",
        ]
        if self.has_diff():
            lines.append(f"Diff Output: {self.diff_output.rstrip()}")
        else:
            lines.append("Diff Output: None")
        return "\n".join(lines)


@dataclass
class Summary:
    num_diff_records: int = 0
    total_matched: int = 0
    unmatched_records: List[str] = field(default_factory=list)
    unused_templates: List[str] = field(default_factory=list)

    @classmethod
    def build(cls, tracker: MatchStatisticsTracker, num_diff_records: int,
              template_names: Iterable[str] = ()) -> "Summary":
        matched = tracker.matched_template_names
        return cls(
            num_diff_records=num_diff_records,
            total_matched=len(matched),
            unmatched_records=sorted(tracker.unmatched_identities()),
            unused_templates=sorted(set(template_names) - matched),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "NumDiffCRs": self.num_diff_records,
            "TotalCRs": self.total_matched,
            "UnmatchedCRS": list(self.unmatched_records),
            "UnusedTemplates": list(self.unused_templates),
        }

    def render(self) -> str:
        lines = ["Summary", f"CRs with diffs: {self.num_diff_records}/{self.total_matched}"]
        if self.unused_templates:
            lines.append(f"Reference templates never matched: {len(self.unused_templates)}")
            lines.extend(f"- {name}" for name in self.unused_templates)
        else:
            lines.append("Every reference template was matched")
        if self.unmatched_records:
            lines.append(f"Cluster CRs unmatched to reference CRs: {len(self.unmatched_records)}")
            lines.extend(f"- {name}" for name in self.unmatched_records)
        else:
            lines.append("No CRs are unmatched to reference CRs")
        return "\n".join(lines)


@dataclass
class CompareOutput:
    summary: Summary
    diffs: List[DiffSum] = field(default_factory=list)

    def sorted_diffs(self) -> List[DiffSum]:
        return sorted(self.diffs, key=lambda d: d.correlated_template + d.record_identity)

    def has_differences(self) -> bool:
        return self.summary.num_diff_records > 0 or bool(self.summary.unmatched_records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Summary": self.summary.to_dict(),
            "Diffs": [d.to_dict() for d in self.sorted_diffs()],
        }
