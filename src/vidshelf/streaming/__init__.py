"""HTTP byte-range streaming."""
