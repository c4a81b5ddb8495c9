"""Slidewright: AI-assisted editing and layout repair for Slidev decks."""

__version__ = "0.1.0"
