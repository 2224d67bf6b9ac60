"""HTTP API exposing spell validation and proving."""
