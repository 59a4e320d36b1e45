"""Processing module — pure pipeline, period recomputation, HTTP surface."""
