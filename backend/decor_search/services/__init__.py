"""Search, quota and liked-product services."""
