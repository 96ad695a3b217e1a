"""Tests for the observability package."""
