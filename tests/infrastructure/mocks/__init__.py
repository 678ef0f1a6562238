"""Mock processes for supervisor tests."""
