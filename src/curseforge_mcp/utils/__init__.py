"""Console, setup wizard, formatting and browser helpers."""
