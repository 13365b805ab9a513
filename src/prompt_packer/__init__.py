"""Pack a selection of project files into a single LLM-ready prompt document."""

__version__ = "0.1.0"
