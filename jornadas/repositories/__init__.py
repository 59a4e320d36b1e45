"""Repositories — storage ports and their SQLAlchemy / in-memory implementations."""
