"""LLM gateway access."""
