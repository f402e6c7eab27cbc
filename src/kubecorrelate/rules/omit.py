#!/usr/bin/env python3
"""
KUBECORRELATE COMPARISON RULES - Pre-Diff Normalization
-------------------------------------------------------
The ComparisonRules engine prepares a rendered template and an observed
record for diffing: it optionally merges the record into the template and
strips the fields that must never be compared.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import copy
from typing import Any, Dict, List, Sequence, Tuple

from kubecorrelate.core.models import ManifestPath, Record, Template, lookup


def merge_patch(target: Any, patch: Any) -> Any:
    """
    Applies an RFC 7386 JSON merge patch. `None` values in the patch delete
    keys; non-mapping patches replace the target.
    """
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


def find_field_paths(tree: Record, fields: Sequence[ManifestPath]) -> List[Tuple[str, ...]]:
    """Expands prefix paths into the concrete keys present in `tree`."""
    result = []
    for f in fields:
        if not f.is_prefix:
            result.append(f.parts)
            continue
        start, prefix = f.parts[:-1], f.parts[-1]
        mapping = lookup(tree, start)
        if isinstance(mapping, dict):
            for key in mapping:
                if isinstance(key, str) and key.startswith(prefix):
                    result.append(start + (key,))
    return result


def _remove(tree: Record, path: Tuple[str, ...]):
    parent = lookup(tree, path[:-1])
    if isinstance(parent, dict):
        parent.pop(path[-1], None)


def omit_fields(tree: Record, fields: Sequence[ManifestPath]):
    """Removes fields in place and prunes mappings left empty by it."""
    for path in find_field_paths(tree, fields):
        if not path:
            continue
        _remove(tree, path)
        for depth in range(len(path) - 1, 0, -1):
            value = lookup(tree, path[:depth])
            if isinstance(value, dict) and not value:
                _remove(tree, path[:depth])


class ComparisonRules:
    """
    Ordered normalization rules shared by every diff. Each rule takes the
    (reference, observed) pair and returns the updated pair.
    """

    def __init__(self, global_fields_to_omit: Sequence[ManifestPath] = ()):
        self.global_fields_to_omit = tuple(global_fields_to_omit)
        self.active_rules = [
            self._rule_merge_observed,
            self._rule_omit_fields,
        ]

    def prepare(self, template: Template, rendered: Record, record: Record) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Returns deep copies of both sides, normalized for comparison."""
        reference = copy.deepcopy(rendered)
        observed = copy.deepcopy(record)
        for rule in self.active_rules:
            reference, observed = rule(template, reference, observed)
        return reference, observed

    def _rule_merge_observed(self, template: Template, reference: Record, observed: Record):
        if template.config.allow_merge:
            reference = merge_patch(observed, reference)
        return reference, observed

    def _rule_omit_fields(self, template: Template, reference: Record, observed: Record):
        fields = template.omitted_fields(self.global_fields_to_omit)
        omit_fields(reference, fields)
        omit_fields(observed, fields)
        return reference, observed
