"""
WikiSubmission SDK - Property-Based Testing Suite

Property-based testing using Hypothesis to discover edge cases and invariants
in query classification and reference resolution.
"""
