"""Results engine for multi-position elections with first and second choices."""
