"""Tests - zkstark test suite."""
