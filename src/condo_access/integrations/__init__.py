"""State owned by third-party integrations, kept apart from authorization."""
