"""Transcription tools discovered by tools.registry."""
