"""Topic-to-script workflow: fetch headlines, summarize, compose a script, illustrate it."""

__version__ = "0.1.0"

__all__ = ["config", "models", "orchestrator"]
