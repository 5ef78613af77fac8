"""Souvella: shared memory jar for two."""
