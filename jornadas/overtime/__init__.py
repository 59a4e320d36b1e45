"""Overtime module — 30-minute grid classification and payroll concept lines."""

from jornadas.overtime.classifier import GridOvertimeClassifier, classify_session

__all__ = ["GridOvertimeClassifier", "classify_session"]
