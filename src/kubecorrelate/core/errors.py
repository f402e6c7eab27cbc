#!/usr/bin/env python3
"""
KUBECORRELATE ERRORS
--------------------
Error taxonomy for the correlation engine. `UnknownMatch` is recoverable
inside a correlation chain; construction failures and oracle failures abort
the run.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from typing import Any, Iterable, List, Sequence

from kubecorrelate.core.models import FIELD_SEPARATOR, Record, identity


class KubeCorrelateError(Exception):
    """Base class for every error raised by kubecorrelate."""


class UnknownMatch(KubeCorrelateError):
    """No correlator could identify a template for the record."""

    def __init__(self, record: Record):
        self.record = record
        super().__init__(f"Template couldn't be matched for: {identity(record)}")


class CombinedUnknownMatch(UnknownMatch):
    """Every correlator in a chain answered UnknownMatch for the same record."""

    def __init__(self, errors: Sequence[UnknownMatch]):
        if not errors:
            raise ValueError("CombinedUnknownMatch needs at least one UnknownMatch")
        self.errors: List[UnknownMatch] = list(errors)
        super().__init__(self.errors[0].record)
        self.args = ("\n".join(str(e) for e in self.errors),)

    def parts(self) -> List[Exception]:
        return list(self.errors)


class FieldResolutionFailure(KubeCorrelateError):
    """A record cannot be hashed by a field group."""

    NO_SUCH_FIELD = "NoSuchField"
    NOT_A_STRING = "NotAString"

    def __init__(self, path: Sequence[str], reason: str):
        self.path = tuple(path)
        self.reason = reason
        joined = FIELD_SEPARATOR.join(self.path)
        if reason == self.NO_SUCH_FIELD:
            message = f"the field {joined} doesn't exist in resource"
        else:
            message = f"the field {joined} isn't string - grouping by non string values isn't supported"
        super().__init__(message)


class AmbiguousTemplateSet(KubeCorrelateError):
    """
    Advisory: several templates share one field-group hash.
    Returned by validation and logged, never raised while matching.
    """

    def __init__(self, fields: str, names: Iterable[str]):
        self.fields = fields
        self.names = sorted(names)
        super().__init__(
            f"More than one template with same {fields}. By default for each resource that is "
            "correlated to one of these templates the template with the least number of diffs "
            "will be used. To use a different template for a specific resource specify it in "
            f"the user config. Template names are: {', '.join(self.names)}"
        )


class UnknownTemplateReference(KubeCorrelateError):
    """An override names a template that does not exist."""

    def __init__(self, record_identity: str, template_name: str):
        self.record_identity = record_identity
        self.template_name = template_name
        super().__init__(
            f"error in template manual matching for resource: {record_identity} "
            f"no template in the name of {template_name}"
        )


class OracleFailure(KubeCorrelateError):
    """The diff-size oracle failed while scoring a candidate."""

    def __init__(self, template_name: str, cause: Any):
        self.template_name = template_name
        self.cause = cause
        super().__init__(f"failed to diff against template {template_name}: {cause}")


class ConfigError(KubeCorrelateError):
    """A user config or reference file is malformed."""
