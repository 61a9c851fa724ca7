"""HTTP analytics API."""
