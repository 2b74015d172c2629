# FILE: lineup_core/__init__.py
"""
lineup_core package: roster context, formations, goalkeeper policy, rotation planner, and compliance validation.
"""
from .scheduler import RotationPlanner, plan_rotation
from .validation import validate

__all__ = [
    "plan_rotation",
    "validate",
    "RotationPlanner",
    "models",
    "context",
    "formations",
    "assignment",
    "goalkeeper",
    "fairness",
    "proposers",
    "solver_heuristic",
    "solver_ilp",
    "oracle",
    "scheduler",
    "validation",
    "report",
    "changes",
    "io",
]
