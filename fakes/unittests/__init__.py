"""Unit tests for fakes."""
