#!/usr/bin/env python3
"""
KUBECORRELATE CORE MODELS
-------------------------
Defines the fundamental data structures shared by every correlation layer.
Records are plain key-value trees (dicts, lists, scalars) owned by the caller;
Templates are immutable reference entities loaded once per run.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Joins identity segments and group hash values
FIELD_SEPARATOR = "_"

# Rendered in place of template expressions that could not be resolved
NO_VALUE = "<no value>"

Record = Dict[str, Any]
FieldPath = Tuple[str, ...]

_MISSING = object()


def _split_path(text: str) -> List[str]:
    parts, current, quoted = [], [], False
    for char in text:
        if char == '"':
            quoted = not quoted
        elif char == "." and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


@dataclass(frozen=True)
class ManifestPath:
    """
    A field path used for omission rules.

    When `is_prefix` is set, the last part is a key prefix: every key under
    the parent path starting with it is matched.
    """
    parts: FieldPath
    is_prefix: bool = False

    @classmethod
    def parse(cls, raw: str) -> "ManifestPath":
        """
        Parses a dotted path such as `metadata.annotations.kubectl*`.
        Keys containing dots are double quoted: `metadata.annotations."a.b/c"`.
        """
        text = raw.strip()
        is_prefix = text.endswith("*")
        if is_prefix:
            text = text[:-1]
        parts = tuple(p for p in _split_path(text) if p != "")
        if not parts and not is_prefix:
            raise ValueError(f"Empty field path: '{raw}'")
        if is_prefix and (not parts or text.endswith(".")):
            # `metadata.*` means every key under metadata
            parts = parts + ("",)
        return cls(parts=parts, is_prefix=is_prefix)

    def __str__(self) -> str:
        text = ".".join(self.parts)
        return text + "*" if self.is_prefix else text


@dataclass(frozen=True)
class TemplateConfig:
    """Rendering-time behavior attached to a template."""
    allow_merge: bool = False
    fields_to_omit: Tuple[ManifestPath, ...] = ()


@dataclass(frozen=True)
class Template:
    """
    A named reference entity.

    `metadata` is a record-shaped tree used only for field hashing, never
    rendered. `source` is the raw template text handed to the diff oracle.
    """
    name: str
    metadata: Record = field(default_factory=dict, compare=False, hash=False)
    config: TemplateConfig = field(default_factory=TemplateConfig)
    source: str = field(default="", compare=False, repr=False)

    def omitted_fields(self, global_fields: Sequence[ManifestPath] = ()) -> List[ManifestPath]:
        """Combines reference-wide omissions with this template's own."""
        return list(global_fields) + list(self.config.fields_to_omit)


def lookup(tree: Any, path: Sequence[str]) -> Any:
    """Returns the value at `path`, or the module sentinel when absent."""
    current = tree
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def is_missing(value: Any) -> bool:
    return value is _MISSING


def nested_string(tree: Any, path: Sequence[str]) -> Tuple[Optional[str], bool, bool]:
    """
    Resolves a string at `path`.

    Returns (value, found, is_string). A present value that is not a string
    yields (None, True, False).
    """
    value = lookup(tree, path)
    if value is _MISSING:
        return None, False, False
    if not isinstance(value, str):
        return None, True, False
    return value, True, True


def _meta(record: Record, key: str) -> str:
    value = lookup(record, ("metadata", key))
    return value if isinstance(value, str) else ""


def identity(record: Record) -> str:
    """
    Derives `apiVersion_kind[_namespace]_name` for a record.
    The namespace segment is left out for cluster-scoped records.
    """
    api_version = record.get("apiVersion") if isinstance(record.get("apiVersion"), str) else ""
    kind = record.get("kind") if isinstance(record.get("kind"), str) else ""
    namespace = _meta(record, "namespace")
    name = _meta(record, "name")
    parts = [api_version, kind, namespace, name] if namespace else [api_version, kind, name]
    return FIELD_SEPARATOR.join(parts)
