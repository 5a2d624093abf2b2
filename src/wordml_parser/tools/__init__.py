"""Developer tools for WordML parsing."""

from .profiling import (
    LayerPerformance,
    PerformanceProfiler,
    PerformanceReport,
    ProfilingSession,
    profile_file,
)

__all__ = [
    "LayerPerformance",
    "PerformanceProfiler",
    "PerformanceReport",
    "ProfilingSession",
    "profile_file",
]
