"""
KUBECORRELATE ENGINE SUITE
--------------------------
Concurrent fan-out, statistics aggregation and the per-record isolation
rules of the CompareEngine.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from kubecorrelate.core.engine import CompareEngine
from kubecorrelate.core.errors import CombinedUnknownMatch, FieldResolutionFailure, OracleFailure, UnknownMatch
from kubecorrelate.core.models import NO_VALUE, Template
from kubecorrelate.tracking.tracker import MatchStatisticsTracker, contains_only


def _fleet(make_record, matched=90, unmatched=10):
    records = [make_record(kind="ConfigMap", name=f"cm-{i}", namespace=f"ns-{i % 5}") for i in range(matched)]
    records += [make_record(kind="Secret", name=f"secret-{i}") for i in range(unmatched)]
    return records


def _configmap_templates(make_template):
    return [
        make_template(f"ns-{i}.yaml", kind="ConfigMap", api_version=NO_VALUE, name=NO_VALUE, namespace=f"ns-{i}")
        for i in range(5)
    ]


def test_concurrent_fan_out_counts_unmatched_exactly(make_template, make_record):
    engine = CompareEngine(_configmap_templates(make_template), lambda t, r: "", concurrency=8, diff_all=True)
    outcomes = engine.run(_fleet(make_record))

    assert len(outcomes) == 100
    assert len(engine.tracker.unmatched_records) == 10
    names = engine.tracker.matched_template_names
    assert names == {f"ns-{i}.yaml" for i in range(5)}
    assert sorted(engine.tracker.unmatched_identities()) == sorted(
        f"apps/v1_Secret_ns-a_secret-{i}" for i in range(10)
    )


def test_plain_misses_are_not_reported_without_diff_all(make_template, make_record):
    engine = CompareEngine(_configmap_templates(make_template), lambda t, r: "", concurrency=8)
    outcomes = engine.run(_fleet(make_record))

    assert engine.tracker.unmatched_records == []
    missed = [o for o in outcomes if not o.matched]
    assert len(missed) == 10
    assert all(isinstance(o.error, UnknownMatch) for o in missed)


def test_non_unknown_correlation_failure_is_tracked(make_record):
    class Strict:
        def match(self, record):
            raise FieldResolutionFailure(("kind",), FieldResolutionFailure.NOT_A_STRING)

    engine = CompareEngine([], lambda t, r: "")
    engine.chain.correlators = [Strict()]
    outcome = engine.process_record(make_record())

    assert not outcome.matched
    assert len(engine.tracker.unmatched_records) == 1


def test_oracle_failure_aborts_run(make_template, make_record):
    def oracle(template, record):
        raise OSError("diff binary missing")

    engine = CompareEngine(_configmap_templates(make_template), oracle, concurrency=2)
    with pytest.raises(OracleFailure):
        engine.run(_fleet(make_record, matched=20, unmatched=0))
    assert engine.tracker.matched_template_names == set()
    assert len(engine.tracker.unmatched_records) >= 1


def test_override_beats_structural_match(make_template, make_record):
    structural = make_template("structural.yaml", kind="Pod", api_version="v1", namespace="ns", name="x")
    manual = make_template("podTemplate", kind=NO_VALUE, api_version=NO_VALUE, namespace=NO_VALUE, name=NO_VALUE)
    engine = CompareEngine([structural, manual], lambda t, r: "", overrides={"v1_Pod_ns_x": "podTemplate"})

    outcome = engine.process_record(make_record(kind="Pod", api_version="v1", namespace="ns", name="x"))
    assert outcome.selection.template.name == "podTemplate"


def test_ambiguous_candidates_resolved_by_smallest_diff(make_template, make_record):
    loose = make_template("loose.yaml")
    tight = make_template("tight.yaml")
    engine = CompareEngine([loose, tight], lambda t, r: "line\n" * (1 if t.name == "tight.yaml" else 6))

    outcome = engine.process_record(make_record())
    assert outcome.selection.template is tight
    assert outcome.selection.score == 1


def test_compare_builds_summary(make_template, make_record):
    templates = _configmap_templates(make_template) + [make_template("unused.yaml", kind="Job")]

    def oracle(template, record):
        return "-a\n+b\n" if template.name == "ns-0.yaml" else ""

    output = CompareEngine(templates, oracle, concurrency=4, diff_all=True).compare(_fleet(make_record))

    assert len(output.diffs) == 90
    assert output.summary.num_diff_records == 18
    assert output.summary.total_matched == 5
    assert output.summary.unused_templates == ["unused.yaml"]
    assert len(output.summary.unmatched_records) == 10
    assert output.has_differences()


def test_invalid_concurrency_falls_back_to_default():
    assert CompareEngine([], lambda t, r: "", concurrency="lots").concurrency == 4
    assert CompareEngine([], lambda t, r: "", concurrency=0).concurrency == 1


def test_parallelism_is_bounded(make_template, make_record):
    active, peak = [0], [0]
    lock = threading.Lock()

    def oracle(template, record):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        threading.Event().wait(0.001)
        with lock:
            active[0] -= 1
        return ""

    engine = CompareEngine(_configmap_templates(make_template), oracle, concurrency=3)
    engine.run(_fleet(make_record, matched=30, unmatched=0))
    assert 1 <= peak[0] <= 3


# --- Match Statistics Tracker ---

def test_tracker_has_no_lost_updates():
    tracker = MatchStatisticsTracker()
    templates = [Template(name=f"t{i % 7}") for i in range(500)]
    records = [{"kind": "Pod", "metadata": {"name": f"p{i}"}} for i in range(500)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(tracker.add_match, templates))
        list(pool.map(tracker.add_unmatched, records))

    assert tracker.matched_template_names == {f"t{i}" for i in range(7)}
    assert len(tracker.unmatched_records) == 500
    assert {r["metadata"]["name"] for r in tracker.unmatched_records} == {f"p{i}" for i in range(500)}


def test_contains_only_inspects_every_part(make_record):
    record = make_record()
    combined = CombinedUnknownMatch([UnknownMatch(record), UnknownMatch(record)])
    assert contains_only(combined, [UnknownMatch])
    assert contains_only(UnknownMatch(record), [UnknownMatch])
    assert not contains_only(OracleFailure("a", "x"), [UnknownMatch])
    assert contains_only(OracleFailure("a", "x"), [UnknownMatch, OracleFailure])
