"""Digital trial card API."""
