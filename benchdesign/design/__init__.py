"""design: Declaring methods before the data exists.

A BenchDesign holds an ordered set of uniquely labelled methods. Each
method pairs a function with parameters that may be deferred expressions,
evaluated only when the benchmark is built against concrete data.
"""

from .deferred import Deferred, expr, value, source_text
from .post import PostSpec, NoPost, SinglePost, MultiPost, as_post
from .method import MethodSpec, RESERVED
from .design import BenchDesign, create_design
from .mutate import add_method, modify_method, expand_method, drop_method
from .show import describe_method, describe_all
