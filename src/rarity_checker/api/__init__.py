"""HTTP API for the Rarity Checker."""
