"""bench: Benchmark data management.

A Dataset is a named, lazy-loading object that knows how to materialize
itself from disc. BenchData is the read-only field view that deferred
expressions are resolved against.
"""

from .dataset import (
    Dataset,
    BenchData,
    as_bench_data,
)
