"""Tests for the automerge package."""
