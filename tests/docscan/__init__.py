"""Tests for the docscan package."""
