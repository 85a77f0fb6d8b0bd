"""Stack trace resolution for development error overlays."""

from rekindle.config import load_and_configure
from rekindle.core import TraceResolver, build_report

__all__ = ["TraceResolver", "build_report", "load_and_configure"]
