#!/usr/bin/env python3
"""
KUBECORRELATE STRUCTURAL CORRELATOR
-----------------------------------
Matches records to templates by hashing groups of discriminating fields.

Field groups are supplied most-specific first. Each template is claimed by
the first group for which all of its fields are literal strings in the
template's metadata; templates with no such group are never indexed here and
can only be reached through an exact-pair override.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from functools import reduce
from typing import List, Sequence, Tuple

from kubecorrelate.core.errors import FieldResolutionFailure, UnknownMatch
from kubecorrelate.core.models import Record, Template
from kubecorrelate.correlation.field_group import FieldGroupMatcher, describe_fields

logger = logging.getLogger("kubecorrelate.correlation")

# apiVersion_name_namespace_kind first, kind alone last. A template with a
# fixed apiVersion, name and kind but a templated namespace is claimed by
# apiVersion_name_kind.
DEFAULT_FIELD_GROUPS: Tuple[Tuple[Tuple[str, ...], ...], ...] = (
    (("apiVersion",), ("metadata", "name"), ("metadata", "namespace"), ("kind",)),
    (("apiVersion",), ("metadata", "namespace"), ("kind",)),
    (("metadata", "name"), ("metadata", "namespace"), ("kind",)),
    (("apiVersion",), ("metadata", "name"), ("kind",)),
    (("metadata", "name"), ("kind",)),
    (("metadata", "namespace"), ("kind",)),
    (("apiVersion",), ("kind",)),
    (("kind",),),
)

_Fold = Tuple[Tuple[FieldGroupMatcher, ...], Tuple[Template, ...]]


def _claim_step(state: _Fold, fields: Sequence[Sequence[str]]) -> _Fold:
    matchers, unclaimed = state
    matcher = FieldGroupMatcher(fields)
    declined = tuple(matcher.claim_templates(unclaimed))
    if len(declined) == len(unclaimed):
        return matchers, unclaimed

    for warning in matcher.validate_templates():
        logger.warning(str(warning))
    logger.debug(f"Field group [{describe_fields(matcher.fields)}] claimed {matcher.claimed_count} template(s)")
    return matchers + (matcher,), declined


class StructuralCorrelator:
    """Tries each active field-group matcher in priority order."""

    def __init__(self, field_groups: Sequence[Sequence[Sequence[str]]], templates: Sequence[Template]):
        self.matchers, self.unindexed = reduce(_claim_step, field_groups, ((), tuple(templates)))
        if self.unindexed:
            logger.debug(
                f"{len(self.unindexed)} template(s) have no fully literal field group "
                "and can only be matched manually"
            )

    @property
    def field_groups(self) -> List[Tuple[Tuple[str, ...], ...]]:
        return [m.fields for m in self.matchers]

    def match(self, record: Record) -> List[Template]:
        for matcher in self.matchers:
            try:
                return matcher.match(record)
            except (UnknownMatch, FieldResolutionFailure):
                continue
        raise UnknownMatch(record)
