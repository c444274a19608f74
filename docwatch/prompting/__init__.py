"""Section table and context assembly."""
