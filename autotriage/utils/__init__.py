"""Shared utilities: retry policy and logging setup."""
