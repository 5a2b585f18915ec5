"""Tests for vesyncair."""
