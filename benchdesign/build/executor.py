"""Evaluate each method of a design, in order or in a pool of workers.

One MethodTask per method carries everything the evaluation needs: the
immutable MethodSpec and the data fields. A task never raises; any error
while resolving parameters, calling the method or post-processing its
result becomes the failure of that task's Outcome.

Parallel evaluation uses joblib's loky backend. Tasks are sent to worker
processes (loky serialises lambdas and closures with cloudpickle), so a
method can neither see its siblings' side effects nor crash the caller.
Results always come back in the order the tasks were given. Sequential
evaluation runs every task on its own copy of what it can reach, so the
two modes isolate methods alike.
"""

import copy
import pickle
import traceback
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass, replace
from typing import Any, Optional

from joblib import Parallel, cpu_count, delayed
from joblib.externals.loky import get_reusable_executor

from benchdesign.design.deferred import Deferred
from benchdesign.design.method import MethodSpec
from benchdesign.design.post import NONE, SINGLE, MULTI
from benchdesign.errors import EvaluationFailure
from benchdesign.utils import get_logger

LOG = get_logger("executor")


@dataclass(frozen=True)
class MethodTask:
    label: str
    method: MethodSpec
    fields: dict


@dataclass(frozen=True)
class Outcome:
    """Result of one task: a value, or the failure that replaced it."""

    label: str
    value: Any = None
    failure: Optional[EvaluationFailure] = None

    @property
    def ok(self):
        return self.failure is None


def evaluate_method(method, fields):
    """Resolve a method against data fields and run it, with post-processing.

    Returns the post-processed result; for named post-processing channels,
    a dict of channel name → result. Errors propagate.
    """
    func = _callable(method.primary, fields, "primary function")
    kwargs = {name: param.resolve(fields) for name, param in method.params.items()}
    result = func(**kwargs)

    post = method.post
    if post.kind == NONE:
        return result
    if post.kind == SINGLE:
        return _callable(post.func, fields, "post function")(result)
    if post.kind == MULTI:
        return {name: _callable(f, fields, f"post function '{name}'")(result)
                for name, f in post.funcs}
    raise TypeError(f"Unknown post-processing kind: {post.kind!r}")


def _callable(deferred, fields, what):
    func = deferred.resolve(fields)
    if not callable(func):
        raise TypeError(f"{what} `{deferred.text}` is not callable "
                        f"(got {type(func).__qualname__})")
    return func


def run_task(task, isolate=False):
    """Run one task, turning any error into a failed Outcome.

    With `isolate`, the task runs on its own copy of the data, parameters
    and captured names, as it would in a worker process.
    """
    try:
        if isolate:
            task = isolated_task(task)
        value = evaluate_method(task.method, task.fields)
    except (Exception, SystemExit) as e:
        failure = EvaluationFailure.from_exception(task.label, e, traceback.format_exc())
        return Outcome(task.label, failure=failure)
    return Outcome(task.label, value=value)


def run_tasks(tasks, parallel=False, n_jobs=None):
    """Run tasks and return their Outcomes in task order.

    Parameters
    ----------
    tasks : list of MethodTask
    parallel : bool
        Run in worker processes instead of one after the other.
    n_jobs : int, optional
        Number of workers (default: one per CPU). Never more than the
        number of tasks.
    """
    tasks = list(tasks)
    if not parallel:
        LOG.debug("Evaluating %s methods sequentially", len(tasks))
        return [run_task(task, isolate=True) for task in tasks]

    n_workers = max(1, min(n_jobs or cpu_count(), len(tasks)))
    LOG.info("Evaluating %s methods in parallel (n_jobs=%s)", len(tasks), n_workers)
    try:
        return Parallel(n_jobs=n_workers, backend="loky")(
            delayed(run_task)(task) for task in tasks)
    except (BrokenProcessPool, pickle.PicklingError) as e:
        LOG.warning("Parallel evaluation broke down (%s: %s); "
                    "re-running each method in its own worker",
                    type(e).__name__, e)
        return [_run_isolated(task) for task in tasks]


def _run_isolated(task):
    """Run one task in a fresh single worker, so a crash only fails this task."""
    executor = get_reusable_executor(max_workers=1)
    try:
        return executor.submit(run_task, task).result()
    except Exception as e:
        failure = EvaluationFailure.from_exception(task.label, e, traceback.format_exc())
        return Outcome(task.label, failure=failure)


def isolated_task(task):
    """A copy of `task` sharing no mutable state with the caller.

    Data fields, literal parameters and names captured by expr() are
    deep-copied one by one. Objects that cannot be copied (locks, open
    files, modules) are shared as they are.
    """
    memo = {}
    fields = {name: _copied(val, memo) for name, val in task.fields.items()}
    method = task.method
    post = method.post
    if post.kind == SINGLE:
        post = replace(post, func=_copied_deferred(post.func, memo))
    elif post.kind == MULTI:
        post = replace(post, funcs=tuple((name, _copied_deferred(f, memo))
                                         for name, f in post.funcs))
    method = replace(method,
                     primary=_copied_deferred(method.primary, memo),
                     params={name: _copied_deferred(p, memo)
                             for name, p in method.params.items()},
                     post=post)
    return MethodTask(task.label, method, fields)


def _copied_deferred(deferred, memo):
    if deferred.is_literal:
        return Deferred(obj=_copied(deferred.obj, memo))
    return Deferred(text=deferred.text,
                    scope={name: _copied(val, memo) for name, val in deferred.scope.items()})


def _copied(obj, memo):
    # a failed copy must not leave half-built containers in the shared memo
    trial = dict(memo)
    try:
        copied = copy.deepcopy(obj, trial)
    except (TypeError, copy.Error, pickle.PicklingError) as e:
        LOG.debug("Sharing uncopyable %s with the method: %s", type(obj).__qualname__, e)
        return obj
    memo.update(trial)
    return copied
