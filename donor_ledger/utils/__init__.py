"""Shared utilities (logging, worker pool, ids)."""
