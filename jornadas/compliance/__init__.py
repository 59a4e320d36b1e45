"""Compliance module — actual attendance against the daily plan."""

from jornadas.compliance.evaluator import evaluate_compliance

__all__ = ["evaluate_compliance"]
