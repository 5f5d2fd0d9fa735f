"""SheetNest - rectangle nesting for laser and router sheet stock."""

__version__ = "0.1.0"
