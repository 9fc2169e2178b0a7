"""Tests for metrics computation and the metrics history."""

import json
import threading

import pytest

from spamfilterai.evaluation.evaluate import classify_folder, evaluate, evaluate_dataset, metrics_from_counts
from spamfilterai.evaluation.history import MetricsHistory
from spamfilterai.inference.predictor import SpamPredictor
from spamfilterai.schemas import LabeledExample, Metrics, ScoredRecord

from conftest import HAM_TEXT, SPAM_TEXT


def _records(pairs):
    records = [ScoredRecord(id=f"r{i}", score=0.9 if pred else 0.1) for i, (pred, _gold) in enumerate(pairs)]
    gold = {f"r{i}": g for i, (_pred, g) in enumerate(pairs)}
    return records, gold.get


class TestEvaluate:
    def test_one_of_each_cell(self):
        records, gold_of = _records([(1, 1), (0, 0), (1, 0), (0, 1)])

        metrics = evaluate(records, gold_of)

        assert (metrics.tp, metrics.tn, metrics.fp, metrics.fn) == (1, 1, 1, 1)
        assert metrics.precision == pytest.approx(0.5)
        assert metrics.recall == pytest.approx(0.5)
        assert metrics.f1 == pytest.approx(0.5)
        assert metrics.accuracy == pytest.approx(0.5)

    def test_no_records(self):
        metrics = evaluate([], lambda _id: 1)

        assert metrics == Metrics()

    def test_unresolvable_gold_is_skipped(self):
        records, gold_of = _records([(1, None), (0, None)])

        metrics = evaluate(records, gold_of)

        assert metrics.evaluated == 0
        assert metrics.skipped == 2
        assert (metrics.precision, metrics.recall, metrics.f1, metrics.accuracy) == (0.0, 0.0, 0.0, 0.0)

    def test_skipped_records_are_not_errors(self):
        records, gold_of = _records([(1, 1), (0, None), (1, None)])

        metrics = evaluate(records, gold_of)

        assert metrics.tp == 1
        assert metrics.accuracy == 1.0
        assert metrics.skipped == 2

    def test_threshold_is_inclusive(self):
        metrics = evaluate([ScoredRecord("a", 0.5), ScoredRecord("b", 0.4999)], {"a": 1, "b": 0}.get)

        assert (metrics.tp, metrics.tn) == (1, 1)

    def test_all_predicted_spam(self):
        records, gold_of = _records([(0, 1), (0, 0)])

        metrics = evaluate(records, gold_of)

        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1 == 0.0
        assert metrics.accuracy == 0.5


def test_metrics_from_counts_zero_guards():
    assert metrics_from_counts(0, 3, 0, 0) == Metrics(tn=3, accuracy=1.0, evaluated=3)


def test_evaluate_dataset(separating_model, embedder):
    predictor = SpamPredictor(separating_model, embedder)
    examples = [LabeledExample(HAM_TEXT, 1), LabeledExample(SPAM_TEXT, 0), LabeledExample(SPAM_TEXT, 1)]

    metrics = evaluate_dataset(predictor, examples)

    assert (metrics.tp, metrics.tn, metrics.fp, metrics.fn) == (1, 1, 0, 1)


class TestMetricsHistory:
    def test_append_never_overwrites(self, tmp_path):
        history = MetricsHistory(tmp_path / "metrics.json")

        history.append(Metrics(tp=1, evaluated=1, accuracy=1.0), source="first")
        history.append(Metrics(tn=2, evaluated=2, accuracy=1.0), source="second")

        entries = history.read()
        assert [entry["source"] for entry in entries] == ["first", "second"]
        assert entries[0]["tp"] == 1
        assert entries[1]["tn"] == 2
        assert all(entry["timestamp"].endswith("Z") for entry in entries)

    @pytest.mark.parametrize("content", ["{broken", '{"not": "a list"}', ""])
    def test_corrupt_file_starts_new_history(self, tmp_path, content):
        path = tmp_path / "metrics.json"
        path.write_text(content, encoding="utf-8")

        MetricsHistory(path).append(Metrics(), source="fresh")

        assert [entry["source"] for entry in json.loads(path.read_text(encoding="utf-8"))] == ["fresh"]

    def test_concurrent_appends_are_not_lost(self, tmp_path):
        history = MetricsHistory(tmp_path / "metrics.json")
        threads = [threading.Thread(target=history.append, args=(Metrics(),), kwargs={"run": i}) for i in range(16)]

        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(entry["run"] for entry in history.read()) == list(range(16))


def test_classify_folder(populated_config, separating_model, embedder):
    (populated_config.emails_dir / "unknown.txt").write_text(HAM_TEXT, encoding="utf-8")
    predictor = SpamPredictor(separating_model, embedder)

    results, metrics = classify_folder(populated_config, predictor)

    assert [(r.email, r.recommendation) for r in results] == [
        ("ham_1.txt", "forward"),
        ("spam_1.txt", "discard"),
        ("unknown.txt", "forward"),
    ]
    assert (metrics.tp, metrics.tn, metrics.skipped) == (1, 1, 1)
    saved = json.loads(populated_config.results_path.read_text(encoding="utf-8"))
    assert saved[0]["email"] == "ham_1.txt"
    assert saved[0]["ham_score"] > 0.5
    history = MetricsHistory(populated_config.metrics_path).read()
    assert history[-1]["source"] == "classify"
    assert history[-1]["accuracy"] == 1.0
