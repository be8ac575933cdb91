"""benchdesign: Declare benchmark methods now, run them on data later.

Methods (a function, its parameters, optional post-processing) are added
to a BenchDesign before the data they will run on needs to exist.
Parameters may be deferred expressions, resolved against the data's
fields when the benchmark is built. Building evaluates every method, keeps
going when one of them fails, and lines the outputs up into tables.

Subpackages:
    bench    Benchmark data: lazy datasets and the read-only field view
    design   BenchDesign, deferred expressions, and method mutations
    build    Evaluation, parallel execution, and result assembly
    utils    Print-based logging
"""

__version__ = "0.1.0"

from .errors import (
    BenchError,
    ConfigurationError,
    DefinitionError,
    UnknownLabel,
    InvalidVariantSpec,
    LabelCollision,
    AssemblyInconsistency,
    EvaluationFailure,
)
from .config import BuildOptions, IdAlignment
from .bench import Dataset, BenchData
from .design import (
    BenchDesign,
    create_design,
    expr,
    value,
    add_method,
    modify_method,
    expand_method,
    drop_method,
    describe_method,
    describe_all,
)
from .build import build_bench, BenchResult, MetaWarning
