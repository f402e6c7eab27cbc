#!/usr/bin/env python3
"""
KUBECORRELATE RECORD SOURCE - Local File Sets
---------------------------------------------
Reads observed resources from YAML/JSON files. Multi-document files and
`kind: List` wrappers are flattened. Files and documents that don't hold a
valid resource are skipped with a warning.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubecorrelate.core.models import Record

logger = logging.getLogger("kubecorrelate.loaders")

SUPPORTED_EXTENSIONS = (".yaml", ".yml", ".json")

SKIP_MESSAGE = (
    "Skipping {path} Input contains additional files from supported file extensions "
    "(json/yaml) that do not contain a valid resource, error: {error}. In case this file "
    "is expected to be a valid resource modify it accordingly."
)


def discover_files(paths: Iterable[Union[str, Path]], recursive: bool = False) -> List[Path]:
    """Expands directories into their supported files, sorted, without symlinks."""
    found: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            found.append(path)
            continue
        if not path.is_dir():
            raise FileNotFoundError(f"Path missing: {path}")
        walker = path.rglob("*") if recursive else path.glob("*")
        found.extend(sorted(
            f for f in walker
            if f.is_file() and not f.is_symlink() and f.suffix.lower() in SUPPORTED_EXTENSIONS
        ))
    return found


def _flatten(doc: Record) -> Iterator[Record]:
    if doc.get("kind") == "List" and isinstance(doc.get("items"), list):
        for item in doc["items"]:
            if isinstance(item, dict):
                yield from _flatten(item)
        return
    yield doc


def load_records(paths: Iterable[Union[str, Path]], recursive: bool = False) -> List[Record]:
    records: List[Record] = []
    yaml = YAML(typ="safe", pure=True)
    for file_path in discover_files(paths, recursive=recursive):
        try:
            docs = list(yaml.load_all(file_path.read_text(encoding="utf-8-sig")))
        except (YAMLError, UnicodeDecodeError) as e:
            logger.warning(SKIP_MESSAGE.format(path=file_path, error=f"error parsing: {e}"))
            continue

        for doc in docs:
            if doc is None:
                continue
            if not isinstance(doc, dict) or not doc.get("kind"):
                logger.warning(SKIP_MESSAGE.format(path=file_path, error="'Kind' is missing"))
                continue
            records.extend(_flatten(doc))
    return records
