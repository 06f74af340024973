"""HTTP API for the address service."""
