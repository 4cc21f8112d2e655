"""HTTP API for the gem battle engine."""
