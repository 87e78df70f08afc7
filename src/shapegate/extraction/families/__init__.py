"""Language-family extractors, imported by the registry on first use."""
