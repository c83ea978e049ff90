"""Record store contract and backends."""
