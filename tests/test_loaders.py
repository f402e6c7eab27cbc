"""
KUBECORRELATE LOADER SUITE
--------------------------
Record files, the user config and reference directories.
"""

import logging

import pytest

from kubecorrelate.core.errors import ConfigError
from kubecorrelate.core.models import NO_VALUE
from kubecorrelate.loaders.config import load_user_config, parse_user_config
from kubecorrelate.loaders.records import load_records
from kubecorrelate.loaders.templates import DEFAULT_FIELDS_TO_OMIT, MANAGED_FIELDS, load_reference


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# --- records ---

def test_multi_document_and_list_files_are_flattened(tmp_path):
    _write(tmp_path / "a.yaml", "kind: Pod\nmetadata:\n  name: a\n---\nkind: Service\nmetadata:\n  name: b\n")
    _write(tmp_path / "list.json", '{"kind": "List", "items": [{"kind": "ConfigMap", "metadata": {"name": "c"}}]}')
    records = load_records([tmp_path])
    assert [r["metadata"]["name"] for r in records] == ["a", "b", "c"]


def test_invalid_files_are_skipped_with_warning(tmp_path, caplog):
    _write(tmp_path / "broken.yaml", "kind: [\n")
    _write(tmp_path / "nokind.yaml", "metadata:\n  name: x\n")
    _write(tmp_path / "notes.txt", "kind: Pod\n")
    _write(tmp_path / "ok.yml", "kind: Pod\nmetadata:\n  name: ok\n")

    with caplog.at_level(logging.WARNING, logger="kubecorrelate.loaders"):
        records = load_records([tmp_path])

    assert [r["metadata"]["name"] for r in records] == ["ok"]
    assert "broken.yaml" in caplog.text
    assert "'Kind' is missing" in caplog.text


def test_recursive_flag_controls_nested_directories(tmp_path):
    _write(tmp_path / "nested" / "pod.yaml", "kind: Pod\nmetadata:\n  name: deep\n")
    assert load_records([tmp_path]) == []
    assert len(load_records([tmp_path], recursive=True)) == 1


def test_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_records([tmp_path / "nowhere"])


# --- user config ---

def test_user_config_pairs(tmp_path):
    path = _write(tmp_path / "config.yaml", (
        "correlationSettings:\n"
        "  manualCorrelation:\n"
        "    correlationPairs:\n"
        "      v1_Pod_ns_x: podTemplate\n"
    ))
    assert load_user_config(path).correlation_pairs == {"v1_Pod_ns_x": "podTemplate"}


@pytest.mark.parametrize("data", [None, {}, {"correlationSettings": None}, {"correlationSettings": {"manualCorrelation": {}}}])
def test_absent_pairs_mean_no_overrides(data):
    assert parse_user_config(data).correlation_pairs == {}


@pytest.mark.parametrize("data", [
    ["not", "a", "mapping"],
    {"correlationSettings": {"manualCorrelation": {"correlationPairs": ["x"]}}},
])
def test_malformed_config_is_rejected(data):
    with pytest.raises(ConfigError):
        parse_user_config(data)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_user_config(tmp_path / "absent.yaml")


# --- reference ---

def test_reference_templates_and_metadata(tmp_path):
    _write(tmp_path / "apps" / "deploy.yaml", (
        "apiVersion: apps/v1\nkind: Deployment\nmetadata:\n"
        "  name: web\n  namespace: {{ .metadata.namespace }}\n"
    ))
    _write(tmp_path / "cm.yaml", "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: settings\n")

    reference = load_reference(tmp_path)

    assert reference.template_names() == ["apps/deploy.yaml", "cm.yaml"]
    deploy = next(t for t in reference.templates if t.name == "apps/deploy.yaml")
    assert deploy.metadata["metadata"]["namespace"] == NO_VALUE
    assert "{{ .metadata.namespace }}" in deploy.source
    assert len(reference.fields_to_omit) == len(DEFAULT_FIELDS_TO_OMIT)


def test_conditional_template_is_loaded_with_falsy_branch(tmp_path):
    _write(tmp_path / "deploy.yaml", (
        "apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: web\n"
        "spec:\n{{- if .spec.paused }}\n  paused: true\n{{- else }}\n  paused: false\n{{- end }}\n"
    ))
    reference = load_reference(tmp_path)

    deploy = reference.templates[0]
    assert deploy.metadata["spec"] == {"paused": False}
    assert deploy.metadata["metadata"]["name"] == "web"


def test_managed_fields_can_be_shown(tmp_path):
    _write(tmp_path / "cm.yaml", "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: settings\n")

    hidden = [str(p) for p in load_reference(tmp_path).fields_to_omit]
    shown = [str(p) for p in load_reference(tmp_path, show_managed_fields=True).fields_to_omit]

    assert MANAGED_FIELDS in hidden
    assert MANAGED_FIELDS not in shown
    assert len(shown) == len(hidden) - 1


def test_reference_settings_file(tmp_path):
    _write(tmp_path / "cm.yaml", "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: settings\n")
    _write(tmp_path / "reference.yaml", (
        "fieldsToOmit:\n  - status\n"
        "templates:\n  cm.yaml:\n    allowMerge: true\n    fieldsToOmit:\n      - data.*\n"
    ))
    reference = load_reference(tmp_path)

    assert reference.template_names() == ["cm.yaml"]
    assert [str(p) for p in reference.fields_to_omit] == ["status"]
    config = reference.templates[0].config
    assert config.allow_merge is True
    assert config.fields_to_omit[0].is_prefix


def test_reference_settings_for_unknown_template(tmp_path):
    _write(tmp_path / "cm.yaml", "kind: ConfigMap\n")
    _write(tmp_path / "reference.yaml", "templates:\n  ghost.yaml: {}\n")
    with pytest.raises(ConfigError):
        load_reference(tmp_path)


def test_template_that_is_not_a_resource(tmp_path):
    _write(tmp_path / "list.yaml", "- a\n- b\n")
    with pytest.raises(ConfigError):
        load_reference(tmp_path)


def test_missing_reference_directory(tmp_path):
    with pytest.raises(ConfigError):
        load_reference(tmp_path / "absent")
