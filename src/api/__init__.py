"""REST API over the family tree store."""
