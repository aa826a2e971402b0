"""Read-only KV namespace served from a directory of assets."""
