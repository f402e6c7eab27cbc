#!/usr/bin/env python3
"""
KUBECORRELATE EXPORTER - Report Serialization
---------------------------------------------
Turns a CompareOutput into text, JSON or YAML.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import io
import json

from ruamel.yaml import YAML

from kubecorrelate.report.summary import DIFF_SEPARATOR, CompareOutput

TEXT = "text"
JSON = "json"
YAML_FORMAT = "yaml"
OUTPUT_FORMATS = (JSON, YAML_FORMAT)


class ReportExporter:

    def __init__(self):
        self.yaml = YAML(typ='rt')
        # Standard K8s: 2 spaces, sequences indented 4 (offset 2)
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096

    def to_text(self, output: CompareOutput, show_empty_diffs: bool = False) -> str:
        parts = [
            d.render() + "\n"
            for d in output.sorted_diffs()
            if show_empty_diffs or d.has_diff()
        ]
        text = ""
        if parts:
            body = f"\n{DIFF_SEPARATOR}\n".join(parts)
            text = f"{DIFF_SEPARATOR}\n{body}\n{DIFF_SEPARATOR}\n"
        return f"{text}{output.summary.render()}\n"

    def to_json(self, output: CompareOutput) -> str:
        return json.dumps(output.to_dict()) + "\n"

    def to_yaml(self, output: CompareOutput) -> str:
        stream = io.StringIO()
        self.yaml.dump(output.to_dict(), stream)
        return stream.getvalue()

    def export(self, output: CompareOutput, fmt: str = TEXT, show_empty_diffs: bool = False) -> str:
        if fmt == JSON:
            return self.to_json(output)
        if fmt == YAML_FORMAT:
            return self.to_yaml(output)
        if fmt in ("", None, TEXT):
            return self.to_text(output, show_empty_diffs)
        raise ValueError(f"Unsupported output format '{fmt}'. One of: {', '.join(OUTPUT_FORMATS)}")
