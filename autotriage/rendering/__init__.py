"""Markdown rendering for triage comments and tool reports."""

from .engine import TemplateRenderer, suggested_next_steps

__all__ = ["TemplateRenderer", "suggested_next_steps"]
