#!/usr/bin/env python3
"""
KUBECORRELATE EXPRESSION SUBSTITUTION
-------------------------------------
A deliberately small renderer for reference templates. `{{ .a.b }}` path
references are resolved against a record and every other value expression
renders as the NO_VALUE marker.

Conditional blocks (`if`, `with`, `range`, with `else` and `else if`) keep
exactly one branch. A condition is true only when it is a path that resolves
to a non-empty value, so rendering without a record always takes the falsy
branch. `define` bodies are dropped and `block` bodies are kept inline.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import re
from typing import Any, List, Optional

from kubecorrelate.core.models import NO_VALUE, Record, is_missing, lookup

EXPRESSION_PATTERN = re.compile(r"\{\{-?\s*(.*?)\s*-?\}\}", re.DOTALL)
PATH_PATTERN = re.compile(r"^\.([\w\-]+(?:\.[\w\-]+)*)$")

BRANCH_KEYWORDS = ("if", "with", "range")


def _scalar(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _truthy(value: Any) -> bool:
    if is_missing(value) or value is None or value is False:
        return False
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    return True


def _condition(pipeline: str, record: Optional[Record]) -> bool:
    negate = False
    if pipeline.startswith("not "):
        negate, pipeline = True, pipeline[4:].strip()
    path = PATH_PATTERN.match(pipeline)
    if record is None or not path:
        value = False
    else:
        value = _truthy(lookup(record, path.group(1).split(".")))
    return value != negate


def _value(body: str, record: Optional[Record]) -> str:
    if record is None:
        return NO_VALUE
    path = PATH_PATTERN.match(body)
    if not path:
        return NO_VALUE
    value = lookup(record, path.group(1).split("."))
    if is_missing(value):
        return NO_VALUE
    rendered = _scalar(value)
    return NO_VALUE if rendered is None else rendered


def render_text(source: str, record: Optional[Record] = None) -> str:
    """
    Substitutes every expression in `source`. With no record, every value
    expression becomes NO_VALUE, which is how template metadata is produced.
    """
    out: List[str] = []
    # one [enclosing_active, branch_taken] pair per open block
    frames: List[List[bool]] = []
    active = True
    pos = 0

    for match in EXPRESSION_PATTERN.finditer(source):
        if active:
            out.append(source[pos:match.start()])
        pos = match.end()

        body = match.group(1).strip()
        keyword, _, rest = body.partition(" ")
        rest = rest.strip()

        if body.startswith("/*") or keyword == "template":
            continue
        if keyword in BRANCH_KEYWORDS:
            taken = active and _condition(rest, record)
            frames.append([active, taken])
            active = taken
        elif keyword == "define":
            frames.append([active, True])
            active = False
        elif keyword == "block":
            frames.append([active, True])
        elif keyword == "else":
            if not frames:
                continue
            enclosing, taken = frames[-1]
            chained, _, pipeline = rest.partition(" ")
            if chained in BRANCH_KEYWORDS:
                branch = not taken and _condition(pipeline.strip(), record)
            else:
                branch = not taken
            frames[-1][1] = taken or branch
            active = enclosing and branch
        elif keyword == "end":
            if frames:
                active = frames.pop()[0]
        elif active:
            out.append(_value(body, record))

    if active:
        out.append(source[pos:])
    return "".join(out)
