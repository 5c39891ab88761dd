"""Cards, the shoe and chip denominations."""
