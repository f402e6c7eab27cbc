#!/usr/bin/env python3
"""
KUBECORRELATE BEST-CANDIDATE SELECTOR
-------------------------------------
Picks one template out of a candidate set by asking the diff-size oracle
how far each candidate is from the record and keeping the smallest diff.

Candidates are scored in template-name order. On equal scores the later
candidate wins, so the documented tie-break is: the lexicographically last
name among the minimal-score candidates.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from kubecorrelate.core.errors import OracleFailure
from kubecorrelate.core.models import Record, Template

logger = logging.getLogger("kubecorrelate.selection")

# render_and_diff(template, record) -> diff text
DiffOracle = Callable[[Template, Record], str]


@dataclass(frozen=True)
class Selection:
    template: Template
    diff_text: str
    score: int


def diff_score(diff_text: str) -> int:
    """Counts line breaks in a diff."""
    return diff_text.count("\n")


def select_best_candidate(candidates: Iterable[Template], record: Record, oracle: DiffOracle) -> Selection:
    """
    Scores every candidate and returns the one with the fewest diff lines.

    The first oracle failure aborts selection; it is re-raised as
    OracleFailure unless it already is one.
    """
    ordered = sorted(candidates, key=lambda t: t.name)
    if not ordered:
        raise ValueError("select_best_candidate needs at least one candidate")

    best: Optional[Selection] = None
    for template in ordered:
        try:
            diff_text = oracle(template, record)
        except OracleFailure:
            raise
        except Exception as e:
            raise OracleFailure(template.name, e) from e

        score = diff_score(diff_text)
        if best is None or score <= best.score:
            best = Selection(template=template, diff_text=diff_text, score=score)

    if len(ordered) > 1:
        logger.debug(f"Selected {best.template.name} ({best.score} diff lines) out of {len(ordered)} candidates")
    return best
