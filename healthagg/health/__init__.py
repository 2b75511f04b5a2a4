"""Health subsystem — probe execution and verdict aggregation."""

from .engine import (
    EvaluationResult,
    HealthEvaluator,
    ProbeError,
    ProbeStatusMismatchError,
    ProbeTransportError,
    UnknownGroupError,
)
