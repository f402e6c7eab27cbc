#!/usr/bin/env python3
"""
KUBECORRELATE FIELD-GROUP MATCHER
---------------------------------
Indexes templates by the concatenated values of one fixed group of
discriminating fields. A template is claimed only when every field of the
group resolves to a literal string in its metadata fragment.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from kubecorrelate.core.errors import AmbiguousTemplateSet, FieldResolutionFailure, UnknownMatch
from kubecorrelate.core.models import FIELD_SEPARATOR, NO_VALUE, FieldPath, Record, Template, nested_string

FieldGroup = Tuple[FieldPath, ...]


def describe_fields(fields: Sequence[Sequence[str]]) -> str:
    """Renders a field group as `apiVersion, metadata_name, kind`."""
    return ", ".join(FIELD_SEPARATOR.join(path) for path in fields)


def group_hash(tree: Record, fields: Sequence[Sequence[str]]) -> str:
    """
    Joins the string values found at every path of the group.

    Raises FieldResolutionFailure when a path is absent or not a string.
    Values are taken literally: a string that happens to hold template
    expression syntax hashes like any other string.
    """
    values: List[str] = []
    for path in fields:
        value, found, is_string = nested_string(tree, path)
        if not found:
            raise FieldResolutionFailure(path, FieldResolutionFailure.NO_SUCH_FIELD)
        if not is_string:
            raise FieldResolutionFailure(path, FieldResolutionFailure.NOT_A_STRING)
        values.append(value)
    return FIELD_SEPARATOR.join(values)


class FieldGroupMatcher:
    """Answers which templates share a record's exact tuple of field values."""

    def __init__(self, fields: Iterable[Sequence[str]]):
        self.fields: FieldGroup = tuple(tuple(path) for path in fields)
        self.buckets: Dict[str, List[Template]] = {}

    def claim_templates(self, templates: Sequence[Template]) -> List[Template]:
        """
        Buckets every template this group can hash and returns the rest,
        in their original order, as not claimed.
        """
        declined: List[Template] = []
        for template in templates:
            try:
                key = group_hash(template.metadata, self.fields)
            except FieldResolutionFailure:
                declined.append(template)
                continue
            if NO_VALUE in key:
                declined.append(template)
                continue
            self.buckets.setdefault(key, []).append(template)
        return declined

    @property
    def claimed_count(self) -> int:
        return sum(len(bucket) for bucket in self.buckets.values())

    def validate_templates(self) -> List[AmbiguousTemplateSet]:
        """Reports every bucket shared by more than one template."""
        warnings = []
        for bucket in self.buckets.values():
            if len(bucket) > 1:
                warnings.append(AmbiguousTemplateSet(describe_fields(self.fields), (t.name for t in bucket)))
        return warnings

    def match(self, record: Record) -> List[Template]:
        key = group_hash(record, self.fields)
        bucket = self.buckets.get(key)
        if not bucket:
            raise UnknownMatch(record)
        return list(bucket)

    def __repr__(self) -> str:
        return f"FieldGroupMatcher([{describe_fields(self.fields)}], templates={self.claimed_count})"
