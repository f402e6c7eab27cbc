#!/usr/bin/env python3
"""
KUBECORRELATE TEMPLATE SOURCE - Reference Directories
-----------------------------------------------------
Every `*.yaml`/`*.yml` file under the reference directory is one template,
named by its POSIX path relative to the directory. An optional
`reference.yaml` at the root holds comparison settings:

    fieldsToOmit:
      - metadata.labels.pod-template-hash
    templates:
      apps/deployment.yaml:
        allowMerge: true
        fieldsToOmit:
          - spec.replicas

The metadata fragment of each template is its source with every expression
replaced by the NO_VALUE marker.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubecorrelate.core.errors import ConfigError
from kubecorrelate.core.models import ManifestPath, Template, TemplateConfig
from kubecorrelate.oracle.render import render_text

logger = logging.getLogger("kubecorrelate.loaders")

REFERENCE_FILE = "reference.yaml"
MANAGED_FIELDS = "metadata.managedFields"

DEFAULT_FIELDS_TO_OMIT: Tuple[str, ...] = (
    "metadata.resourceVersion",
    "metadata.generation",
    "metadata.uid",
    "metadata.generateName",
    "metadata.creationTimestamp",
    MANAGED_FIELDS,
    'metadata.annotations."kubectl.kubernetes.io/last-applied-configuration"',
    "status",
)


@dataclass
class Reference:
    templates: List[Template] = field(default_factory=list)
    fields_to_omit: Tuple[ManifestPath, ...] = ()

    def template_names(self) -> List[str]:
        return sorted(t.name for t in self.templates)


def _parse_paths(raw: Any, where: str) -> Tuple[ManifestPath, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError(f"{where}: 'fieldsToOmit' must be a list of field paths")
    try:
        return tuple(ManifestPath.parse(str(p)) for p in raw)
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from e


def _load_settings(root: Path, yaml: YAML) -> Dict[str, Any]:
    settings_path = root / REFERENCE_FILE
    if not settings_path.exists():
        return {}
    try:
        data = yaml.load(settings_path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise ConfigError(f"Failed to parse {settings_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{settings_path} must be a mapping")
    return data


def load_template(path: Path, name: str, config: TemplateConfig, yaml: YAML) -> Template:
    source = path.read_text(encoding="utf-8-sig")
    try:
        metadata = yaml.load(render_text(source))
    except YAMLError as e:
        raise ConfigError(f"Template {name} isn't valid YAML once expressions are removed: {e}") from e
    if not isinstance(metadata, dict):
        raise ConfigError(f"Template {name} doesn't describe a resource")
    return Template(name=name, metadata=metadata, config=config, source=source)


def load_reference(directory: Union[str, Path], show_managed_fields: bool = False) -> Reference:
    """
    Loads every template under `directory`. With `show_managed_fields` the
    `metadata.managedFields` omission is dropped so those fields get diffed.
    """
    root = Path(directory)
    if not root.is_dir():
        raise ConfigError(f"Reference directory doesn't exist: {root}")

    yaml = YAML(typ="safe", pure=True)
    settings = _load_settings(root, yaml)
    global_fields = settings.get("fieldsToOmit")
    fields_to_omit = _parse_paths(
        list(DEFAULT_FIELDS_TO_OMIT) if global_fields is None else global_fields,
        REFERENCE_FILE,
    )
    if show_managed_fields:
        fields_to_omit = tuple(p for p in fields_to_omit if str(p) != MANAGED_FIELDS)

    per_template = settings.get("templates") or {}
    if not isinstance(per_template, dict):
        raise ConfigError(f"{REFERENCE_FILE}: 'templates' must be a mapping of template name to config")

    files = sorted(
        f for f in root.rglob("*")
        if f.is_file() and f.suffix.lower() in (".yaml", ".yml") and f.relative_to(root).as_posix() != REFERENCE_FILE
    )

    templates = []
    for path in files:
        name = path.relative_to(root).as_posix()
        raw_config = per_template.get(name) or {}
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{REFERENCE_FILE}: config of {name} must be a mapping")
        config = TemplateConfig(
            allow_merge=bool(raw_config.get("allowMerge", False)),
            fields_to_omit=_parse_paths(raw_config.get("fieldsToOmit"), name),
        )
        templates.append(load_template(path, name, config, yaml))

    unknown = set(per_template) - {t.name for t in templates}
    if unknown:
        raise ConfigError(f"{REFERENCE_FILE} configures templates that don't exist: {', '.join(sorted(unknown))}")

    logger.info(f"Loaded {len(templates)} template(s) from {root}")
    return Reference(templates=templates, fields_to_omit=fields_to_omit)
