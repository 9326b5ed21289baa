"""HTTP adapter for the pricing engine."""
