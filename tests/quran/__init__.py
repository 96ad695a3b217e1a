"""Tests for the quran package."""
