"""Domain layer: transfers and error types."""
