"""Slide deck services.

This package provides the deck parser, the layout rules engine, quality
scoring and the feedback-driven edit orchestrator.
"""
