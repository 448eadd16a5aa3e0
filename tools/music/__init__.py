"""Audio → note tools."""
