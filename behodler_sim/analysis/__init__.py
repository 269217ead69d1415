"""Protocol metrics and reporting"""

from .metrics import BehodlerMetricsCalculator

__all__ = ["BehodlerMetricsCalculator"]
