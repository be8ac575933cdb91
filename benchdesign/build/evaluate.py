"""build_bench: evaluate every method of a design against data.

The steps are: validate the request (nothing runs if any check fails),
evaluate each method in isolation, combine the outputs into one table per
output channel, and describe the methods in a metadata table.
"""

from benchdesign.bench.dataset import as_bench_data
from benchdesign.build.assemble import assemble_assays, side_table
from benchdesign.build.checks import plan_build
from benchdesign.build.executor import MethodTask, run_tasks
from benchdesign.build.metadata import method_metadata
from benchdesign.build.result import BenchResult
from benchdesign.config import BuildOptions
from benchdesign.utils import get_logger

LOG = get_logger("build")


def build_bench(design, options=None, **overrides):
    """Evaluate a design's methods and collect their outputs.

    Parameters
    ----------
    design : BenchDesign
    options : BuildOptions or dict, optional
        Build options; see BuildOptions.
    **overrides
        Individual BuildOptions fields, taking precedence over `options`
        (e.g. ``data=df, sort_ids=True, parallel=True``).

    Returns
    -------
    BenchResult

    Raises
    ------
    ConfigurationError
        The request failed a check; no method was evaluated.
    AssemblyInconsistency
        Method outputs could not be combined into tables.

    Notes
    -----
    A method that raises while being evaluated does not stop the build. The
    error is logged and the method's column is filled with NaN. There is no
    timeout: a method that never returns blocks the build.
    """
    if not isinstance(options, BuildOptions):
        options = BuildOptions.from_dict(options)
    options = options.updated(**overrides)

    data = as_bench_data(options.data if options.data is not None else design.data)
    plan = plan_build(design, data, options)
    fields = data.fields()

    LOG.info("Building benchmark: %s methods, %s output channel(s)",
             len(design), len(plan.channels))
    tasks = [MethodTask(method.label, method, fields) for method in design]
    outcomes = run_tasks(tasks, parallel=options.parallel, n_jobs=options.n_jobs)

    failures = [o.failure for o in outcomes if not o.ok]
    for failure in failures:
        LOG.error("!! error caught in build_bench !!\n"
                  "!! error in method: %s\n"
                  "!!  original message:\n"
                  "!!  %s: %s", failure.label, failure.error_type, failure.message)

    assays = assemble_assays(outcomes, plan.channels, plan.multi, plan.alignment, data=data)
    col_data = method_metadata(design, ptabular=options.ptabular, fields=fields)

    ground_truth = None
    if plan.truth_cols:
        ground_truth = side_table(data, plan.truth_cols, plan.channels, plan.alignment)
    features = None
    if plan.ft_cols:
        features = side_table(data, plan.ft_cols, plan.ft_cols, plan.alignment)

    return BenchResult(assays=assays,
                       col_data=col_data,
                       performance_metrics={name: {} for name in plan.channels},
                       ground_truth=ground_truth,
                       features=features,
                       failures=failures)
