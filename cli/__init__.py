"""
WikiSubmission SDK - Command Line Interface

Entry point for the ``wikisubmission`` console script.
"""
from cli.main import app, main

__all__ = ["app", "main"]
