"""Consolidation module — one session per employee and work date."""

from jornadas.consolidation.policy import consolidate_sessions

__all__ = ["consolidate_sessions"]
