"""HTTP surface for telops."""
