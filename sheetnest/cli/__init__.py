"""Command-line interface for SheetNest."""
