"""Tests for the ABBI SDK."""
