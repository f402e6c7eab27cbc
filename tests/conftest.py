import pytest

from kubecorrelate.core.models import Template, TemplateConfig


def build_record(kind="Deployment", name="app", namespace="ns-a", api_version="apps/v1", **extra):
    metadata = {}
    if name is not None:
        metadata["name"] = name
    if namespace is not None:
        metadata["namespace"] = namespace
    record = {"apiVersion": api_version, "kind": kind, "metadata": metadata}
    record.update(extra)
    return record


def build_template(template_name, allow_merge=False, source="", **fields):
    return Template(
        name=template_name,
        metadata=build_record(**fields),
        config=TemplateConfig(allow_merge=allow_merge),
        source=source,
    )


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def make_template():
    return build_template
