"""Diff parsing and review-comment position tracking."""
