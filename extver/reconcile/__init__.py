from .reconciler import VersionReconciler
from .summary import RunSummary, UnitOutcome, UnitStatus

__all__ = ["VersionReconciler", "RunSummary", "UnitOutcome", "UnitStatus"]
