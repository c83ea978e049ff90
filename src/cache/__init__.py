"""Read-through cache, its models and error taxonomy."""
