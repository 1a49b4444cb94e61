"""sniffkit - token-stream static analysis and autofix toolkit for PHP sources."""

from __future__ import annotations

__version__ = "0.1.0"
