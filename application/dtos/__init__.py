"""Application DTOs grouped by area."""
