"""Domain records and error types."""
