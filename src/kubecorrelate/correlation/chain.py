#!/usr/bin/env python3
"""
KUBECORRELATE CORRELATION CHAIN
-------------------------------
Composes correlators with ordered fallback. Only `UnknownMatch` falls
through to the next correlator; any other failure stops the chain.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from typing import List, Mapping, Optional, Protocol, Sequence

from kubecorrelate.core.errors import CombinedUnknownMatch, UnknownMatch
from kubecorrelate.core.models import Record, Template
from kubecorrelate.correlation.exact import ExactPairCorrelator
from kubecorrelate.correlation.structural import DEFAULT_FIELD_GROUPS, StructuralCorrelator

logger = logging.getLogger("kubecorrelate.correlation")


class Correlator(Protocol):
    """Anything that can match a record to a candidate template set."""

    def match(self, record: Record) -> List[Template]:
        """Returns one or more candidates or raises UnknownMatch."""
        ...


class CorrelationChain:

    def __init__(self, correlators: Sequence[Correlator]):
        self.correlators = list(correlators)

    def match(self, record: Record) -> List[Template]:
        misses: List[UnknownMatch] = []
        for correlator in self.correlators:
            try:
                return correlator.match(record)
            except UnknownMatch as e:
                misses.append(e)
        if not misses:
            raise UnknownMatch(record)
        raise CombinedUnknownMatch(misses)


def build_correlation_chain(templates: Sequence[Template],
                            overrides: Optional[Mapping[str, str]] = None,
                            field_groups: Sequence = DEFAULT_FIELD_GROUPS) -> CorrelationChain:
    """
    Builds `[ExactPair, Structural]` when overrides exist, otherwise just
    `[Structural]`. Raises UnknownTemplateReference for a bad override.
    """
    correlators: List[Correlator] = []
    if overrides:
        correlators.append(ExactPairCorrelator(overrides, templates))
        logger.info(f"Loaded {len(overrides)} manual correlation pair(s)")
    correlators.append(StructuralCorrelator(field_groups, templates))
    return CorrelationChain(correlators)
