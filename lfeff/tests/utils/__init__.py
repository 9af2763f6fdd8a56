"""Test utilities for the efficiency analysis test suite."""
