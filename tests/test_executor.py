"""Tests for method evaluation and failure isolation."""

import pickle
import threading

import numpy as np
import pytest

from benchdesign.build.executor import (
    MethodTask,
    Outcome,
    evaluate_method,
    isolated_task,
    run_task,
    run_tasks,
)
from benchdesign.design import expr
from benchdesign.design.method import MethodSpec
from benchdesign.errors import EvaluationFailure


def root(x):
    return np.sqrt(x)


def count(obj):
    return len(obj)


def append_one(values):
    values.append(1)
    return len(values)


@pytest.fixture
def fields():
    return {"x": np.array([1.0, 4.0, 9.0]), "items": []}


class TestEvaluateMethod:
    def test_no_post(self, fields):
        method = MethodSpec.define("sqrt", root, params={"x": expr("x")})
        np.testing.assert_allclose(evaluate_method(method, fields), [1.0, 2.0, 3.0])

    def test_single_post(self, fields):
        method = MethodSpec.define("total", root, params={"x": expr("x")}, post=np.sum)
        assert evaluate_method(method, fields) == pytest.approx(6.0)

    def test_multi_post(self, fields):
        method = MethodSpec.define("stats", root, params={"x": expr("x")},
                                   post={"lo": np.min, "hi": np.max})
        out = evaluate_method(method, fields)
        assert out == {"lo": pytest.approx(1.0), "hi": pytest.approx(3.0)}

    def test_primary_as_expression(self, fields):
        method = MethodSpec.define("len", expr("count"), params={"obj": expr("x")})
        assert evaluate_method(method, fields) == 3

    def test_not_callable(self, fields):
        method = MethodSpec.define("bad", expr("x"))
        with pytest.raises(TypeError, match="not callable"):
            evaluate_method(method, fields)


class TestRunTask:
    def test_success(self, fields):
        task = MethodTask("len", MethodSpec.define("len", count, params={"obj": expr("x")}), fields)
        outcome = run_task(task)
        assert outcome.ok
        assert outcome.value == 3

    def test_failure_is_captured(self, fields):
        method = MethodSpec.define("bad", lambda: 1 / 0)
        outcome = run_task(MethodTask("bad", method, fields))
        assert not outcome.ok
        assert outcome.value is None
        assert outcome.failure.label == "bad"
        assert outcome.failure.error_type == "ZeroDivisionError"
        assert "Traceback" in outcome.failure.details

    def test_missing_name_is_captured(self, fields):
        method = MethodSpec.define("typo", count, params={"obj": expr("y")})
        outcome = run_task(MethodTask("typo", method, fields))
        assert outcome.failure.error_type == "NameError"

    def test_system_exit_is_captured(self, fields):
        def leave():
            raise SystemExit(3)
        outcome = run_task(MethodTask("exit", MethodSpec.define("exit", leave), fields))
        assert outcome.failure.error_type == "SystemExit"


class TestRunTasks:
    def test_sequential_tasks_do_not_share_data(self, fields):
        tasks = [MethodTask(label, MethodSpec.define(label, append_one,
                                                     params={"values": expr("items")}),
                            fields)
                 for label in ("a", "b")]
        outcomes = run_tasks(tasks)
        assert [o.value for o in outcomes] == [1, 1]
        assert fields["items"] == []

    def test_order_is_kept(self, fields):
        tasks = [MethodTask(str(i), MethodSpec.define(str(i), lambda k=i: k), fields)
                 for i in range(4)]
        assert [o.value for o in run_tasks(tasks)] == [0, 1, 2, 3]


class TestIsolatedTask:
    def test_copies_fields_literals_and_captured_names(self, fields):
        offset = np.zeros(3)
        literal = np.ones(3)
        method = MethodSpec.define("m", np.add, params={"x1": expr("x + offset"),
                                                        "x2": literal})
        task = isolated_task(MethodTask("m", method, fields))
        assert task.fields["x"] is not fields["x"]
        assert task.method.params["x2"].obj is not literal
        assert task.method.params["x1"].scope["offset"] is not offset
        np.testing.assert_array_equal(task.method.params["x2"].obj, literal)
        assert task.method.primary.obj is np.add

    def test_shared_objects_stay_shared_within_a_task(self, fields):
        method = MethodSpec.define("m", append_one, params={"values": fields["items"]})
        task = isolated_task(MethodTask("m", method, fields))
        assert task.method.params["values"].obj is task.fields["items"]

    def test_uncopyable_objects_are_shared(self, fields):
        lock = threading.Lock()
        task = isolated_task(MethodTask("m", MethodSpec.define("m", len),
                                        {**fields, "lock": lock}))
        assert task.fields["lock"] is lock

    def test_isolated_run_leaves_design_untouched(self, fields):
        literal = []
        method = MethodSpec.define("m", append_one, params={"values": literal})
        outcomes = run_tasks([MethodTask("m", method, fields)] * 2)
        assert [o.value for o in outcomes] == [1, 1]
        assert literal == []
        assert method.params["values"].obj == []


class TestEvaluationFailure:
    def test_message(self):
        failure = EvaluationFailure("m", "KeyError", "'col'")
        assert str(failure) == "method 'm' failed: KeyError: 'col'"

    def test_pickles(self):
        failure = EvaluationFailure.from_exception("m", ValueError("bad"), "trace")
        copy = pickle.loads(pickle.dumps(failure))
        assert (copy.label, copy.error_type, copy.message, copy.details) == \
            ("m", "ValueError", "bad", "trace")

    def test_outcome_ok(self):
        assert Outcome("m", value=1).ok
        assert not Outcome("m", failure=EvaluationFailure("m", "E", "x")).ok
