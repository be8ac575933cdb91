"""build: Evaluating a design against data.

build_bench() validates the request, evaluates every method (optionally in
parallel worker processes), and assembles the outputs and the method
metadata into a BenchResult.
"""

from .evaluate import build_bench
from .result import BenchResult
from .executor import MethodTask, Outcome, evaluate_method, isolated_task, run_task, run_tasks
from .assemble import assemble_assays, expand_rows, side_table
from .metadata import MetaWarning, method_metadata, function_provenance
from .checks import BuildPlan, plan_build
