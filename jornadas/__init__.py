"""Jornadas — punch reconciliation, grid overtime and attendance compliance."""
