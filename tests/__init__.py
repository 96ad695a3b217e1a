"""WikiSubmission SDK test suite."""
