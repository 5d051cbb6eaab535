"""Pure hiring workflow rules. No I/O happens in this package."""
