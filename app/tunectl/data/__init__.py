"""Bundled data files (default catalog, source files, theme)."""
