"""Partitioning, formatting and mounting of the target disk."""
