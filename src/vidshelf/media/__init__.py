"""Media metadata probing, caching and derived artifacts."""
