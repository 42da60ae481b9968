"""Engine subpackage - core metrics computation and insights."""
from .metrics_engine import MetricsEngine, compute
from .models import CalculatorInputs, CalculationResult, Insight

__all__ = ['MetricsEngine', 'compute', 'CalculatorInputs', 'CalculationResult', 'Insight']
