#!/usr/bin/env python3
"""
KUBECORRELATE LOCAL DIFF ORACLE
-------------------------------
Default `render_and_diff(template, record)` implementation: renders the
template against the record, normalizes both sides with ComparisonRules and
returns a unified diff of their YAML forms. An empty string means the record
matches its reference exactly.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import difflib
import io
import logging
from typing import Any, Dict, Sequence

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubecorrelate.core.errors import OracleFailure
from kubecorrelate.core.models import ManifestPath, Record, Template, identity
from kubecorrelate.oracle.render import render_text
from kubecorrelate.rules.omit import ComparisonRules

logger = logging.getLogger("kubecorrelate.oracle")


def _sorted_tree(data: Any) -> Any:
    """Orders mapping keys so that both sides of a diff line up."""
    if isinstance(data, dict):
        return {k: _sorted_tree(data[k]) for k in sorted(data, key=str)}
    if isinstance(data, list):
        return [_sorted_tree(item) for item in data]
    return data


class LocalDiffOracle:
    """
    Safe for concurrent use: every call builds its own YAML instances and
    works on deep copies.
    """

    def __init__(self, global_fields_to_omit: Sequence[ManifestPath] = ()):
        self.rules = ComparisonRules(global_fields_to_omit)

    def _loader(self) -> YAML:
        return YAML(typ="safe", pure=True)

    def _dumper(self) -> YAML:
        yaml = YAML(typ="rt")
        yaml.indent(mapping=2, sequence=4, offset=2)
        yaml.width = 4096
        return yaml

    def render(self, template: Template, record: Record) -> Dict[str, Any]:
        text = render_text(template.source, record)
        try:
            rendered = self._loader().load(text)
        except YAMLError as e:
            raise OracleFailure(template.name, f"rendered template isn't valid YAML: {e}") from e
        if not isinstance(rendered, dict):
            raise OracleFailure(template.name, "rendered template is not a mapping")
        return rendered

    def dump(self, data: Record) -> str:
        if not data:
            return ""
        stream = io.StringIO()
        self._dumper().dump(_sorted_tree(data), stream)
        return stream.getvalue()

    def __call__(self, template: Template, record: Record) -> str:
        rendered = self.render(template, record)
        reference, observed = self.rules.prepare(template, rendered, record)

        diff = difflib.unified_diff(
            self.dump(reference).splitlines(),
            self.dump(observed).splitlines(),
            fromfile=f"reference/{template.name}",
            tofile=f"observed/{identity(record)}",
            lineterm=""
        )
        lines = list(diff)
        if not lines:
            return ""
        logger.debug(f"{identity(record)} differs from {template.name} by {len(lines)} line(s)")
        return "\n".join(lines) + "\n"
