"""Shared utilities for plenti."""
