"""Shared utilities for SheetNest."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Rich console for pretty output
console = Console()


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set up logging with Rich handler."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    return logging.getLogger("sheetnest")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module."""
    return logging.getLogger(f"sheetnest.{name}")


def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists and return the Path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def to_float(value: Any) -> Optional[float]:
    """Coerce a caller-supplied number, returning None when it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def format_number(value: float, precision: int = 4) -> str:
    """Format a coordinate compactly (no trailing zeros)."""
    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_area(square_inches: float) -> str:
    """Format an area in square inches as human-readable string."""
    if square_inches >= 144:
        return f"{square_inches:.1f} in² ({square_inches / 144:.2f} ft²)"
    return f"{square_inches:.1f} in²"
