"""Tests for master-coder."""
