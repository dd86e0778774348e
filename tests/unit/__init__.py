"""Unit tests: no network access, external services replaced by doubles."""
