"""GitHub issue triage over MCP: classify, label, rank and report."""

__version__ = "0.1.0"
