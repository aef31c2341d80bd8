"""depcheck - find packages locked at multiple versions and who is to blame for them."""

__version__ = "0.3.0"

from .analyzer import DuplicateAnalyzer
from .exceptions import CycleDetectedError, DepcheckError, LockFileError, UnresolvedReferenceError
from .graph_builder import PackageGraphBuilder, build_graph
from .models import AnalysisOptions, DuplicateReport, PackageGraph, PackageId, PackageRecord

__all__ = [
    "__version__",
    "AnalysisOptions",
    "CycleDetectedError",
    "DepcheckError",
    "DuplicateAnalyzer",
    "DuplicateReport",
    "LockFileError",
    "PackageGraph",
    "PackageGraphBuilder",
    "PackageId",
    "PackageRecord",
    "UnresolvedReferenceError",
    "build_graph",
]
