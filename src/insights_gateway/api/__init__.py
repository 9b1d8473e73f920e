"""HTTP surface of the insights gateway."""
