"""Profiling, summarizing and diffing steps."""
