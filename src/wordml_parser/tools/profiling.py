"""Performance profiling tools for WordML parsing.

Times the read, parse and serialize stages of repeated parses, tracks memory
and CPU with psutil, and turns the numbers into a JSON report with simple
optimization recommendations.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import psutil

from wordml_parser.api.docx import read_docx_part
from wordml_parser.grammar import DocumentParser
from wordml_parser.shared.config import ParserConfig
from wordml_parser.shared.logging import get_logger

STAGE_READ = "read"
STAGE_PARSE = "parse"
STAGE_SERIALIZE = "serialize"

SLOW_SESSION_MS = 1000.0
LOW_THROUGHPUT_MB_PER_S = 1.0
BOTTLENECK_SHARE = 0.6
MEMORY_TO_INPUT_RATIO = 10


@dataclass
class LayerPerformance:
    """Performance metrics for one stage of a profiled parse."""

    layer_name: str
    start_time: float
    end_time: float
    memory_start: int  # bytes
    memory_end: int  # bytes
    cpu_percent: float
    operations_count: int = 0

    @property
    def duration_ms(self) -> float:
        """Processing duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def memory_delta(self) -> int:
        """Memory usage change in bytes."""
        return self.memory_end - self.memory_start

    @property
    def ops_per_second(self) -> float:
        duration_s = self.end_time - self.start_time
        return self.operations_count / duration_s if duration_s > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layer_name": self.layer_name,
            "duration_ms": self.duration_ms,
            "memory_delta": self.memory_delta,
            "cpu_percent": self.cpu_percent,
            "operations_count": self.operations_count,
            "ops_per_second": self.ops_per_second,
        }


@dataclass
class ProfilingSession:
    """Container for one profiled parse."""

    session_id: str
    start_time: float
    end_time: float
    input_size: int  # bytes
    layers: List[LayerPerformance] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        """Total session duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def throughput_mb_per_s(self) -> float:
        """Processing throughput in MB/s."""
        duration_s = self.end_time - self.start_time
        if duration_s <= 0:
            return 0.0
        return (self.input_size / (1024 * 1024)) / duration_s

    def layer(self, layer_name: str) -> Optional[LayerPerformance]:
        for layer in self.layers:
            if layer.layer_name == layer_name:
                return layer
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "input_size": self.input_size,
            "total_duration_ms": self.total_duration_ms,
            "throughput_mb_s": self.throughput_mb_per_s,
            "metadata": self.metadata,
            "layers": [layer.to_dict() for layer in self.layers],
        }


@dataclass
class PerformanceReport:
    """Aggregated view over a set of profiling sessions."""

    sessions: List[ProfilingSession]
    generation_time: float

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def average_duration_ms(self) -> float:
        """Average processing duration across sessions."""
        if not self.sessions:
            return 0.0
        return sum(s.total_duration_ms for s in self.sessions) / len(self.sessions)

    @property
    def average_throughput_mb_per_s(self) -> float:
        """Average throughput across sessions."""
        if not self.sessions:
            return 0.0
        return sum(s.throughput_mb_per_s for s in self.sessions) / len(self.sessions)

    def average_layer_duration_ms(self) -> Dict[str, float]:
        """Mean duration per stage name over all sessions."""
        durations: Dict[str, List[float]] = {}
        for session in self.sessions:
            for layer in session.layers:
                durations.setdefault(layer.layer_name, []).append(layer.duration_ms)
        return {name: sum(values) / len(values) for name, values in durations.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_time": self.generation_time,
            "summary": {
                "session_count": self.session_count,
                "average_duration_ms": self.average_duration_ms,
                "average_throughput_mb_s": self.average_throughput_mb_per_s,
                "average_layer_duration_ms": self.average_layer_duration_ms(),
            },
            "sessions": [session.to_dict() for session in self.sessions],
        }


class PerformanceProfiler:
    """Profiler for WordML parsing sessions.

    Examples:
        Stage-by-stage profiling:
        >>> profiler = PerformanceProfiler()
        >>> session = profiler.start_session("report", input_size=len(data))
        >>> with profiler.profile_layer(session, "parse") as layer:
        ...     document = parse_document(text)
        ...     layer.operations_count = document.total_elements
        >>> profiler.end_session(session)
        >>> profiler.generate_report().session_count
        1
    """

    def __init__(self, enable_memory_tracking: bool = True):
        """Initialize performance profiler.

        Args:
            enable_memory_tracking: Whether to sample RSS and CPU around each stage
        """
        self.enable_memory_tracking = enable_memory_tracking
        self.sessions: List[ProfilingSession] = []
        self.current_session: Optional[ProfilingSession] = None
        self.logger = get_logger(__name__, None, "performance_profiler")
        self._process = psutil.Process() if enable_memory_tracking else None

    def start_session(self, session_id: str, input_size: int = 0) -> ProfilingSession:
        """Start a new profiling session.

        Args:
            session_id: Unique identifier for the session
            input_size: Size of input data in bytes

        Returns:
            ProfilingSession object for tracking
        """
        session = ProfilingSession(
            session_id=session_id,
            start_time=time.perf_counter(),
            end_time=0.0,
            input_size=input_size
        )
        self.current_session = session
        self.logger.debug(
            "Started profiling session",
            extra={
                "session_id": session_id,
                "input_size": input_size,
                "memory_tracking": self.enable_memory_tracking
            }
        )
        return session

    def end_session(self, session: ProfilingSession) -> None:
        """End a profiling session and store results."""
        session.end_time = time.perf_counter()
        self.sessions.append(session)
        if self.current_session is session:
            self.current_session = None

        self.logger.debug(
            "Ended profiling session",
            extra={
                "session_id": session.session_id,
                "duration_ms": session.total_duration_ms,
                "layer_count": len(session.layers)
            }
        )

    def profile_layer(self, session: ProfilingSession, layer_name: str) -> "LayerProfiler":
        """Context manager that records one stage into ``session``."""
        return LayerProfiler(self, session, layer_name)

    def sample(self) -> Tuple[int, float]:
        """Current RSS in bytes and CPU percent since the previous sample."""
        if self._process is None:
            return 0, 0.0
        return self._process.memory_info().rss, self._process.cpu_percent()

    def generate_report(self) -> PerformanceReport:
        return PerformanceReport(sessions=self.sessions.copy(), generation_time=time.time())

    def save_report(self, report: PerformanceReport, output_path: Union[str, Path]) -> None:
        """Save performance report to a JSON file."""
        output = Path(output_path)
        output.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        self.logger.info(
            "Saved performance report",
            extra={"output_path": str(output), "session_count": report.session_count}
        )

    def get_optimization_recommendations(self, report: PerformanceReport) -> List[str]:
        """Generate recommendations from the timings in ``report``."""
        if not report.sessions:
            return ["No profiling data available for analysis"]

        recommendations = []
        if report.average_duration_ms > SLOW_SESSION_MS:
            recommendations.append(
                "Documents take over a second to process; parse .docx parts "
                "in parallel with 'wordml parse --workers'"
            )
        if report.average_throughput_mb_per_s < LOW_THROUGHPUT_MB_PER_S:
            recommendations.append(
                "Low throughput detected; disable include_timing and DEBUG logging "
                "when parsing in bulk"
            )

        for layer_name, duration in report.average_layer_duration_ms().items():
            if duration > report.average_duration_ms * BOTTLENECK_SHARE:
                recommendations.append(
                    f"Stage '{layer_name}' takes most of the processing time"
                )

        for session in report.sessions:
            memory_growth = sum(
                layer.memory_delta for layer in session.layers if layer.memory_delta > 0
            )
            if session.input_size and memory_growth > session.input_size * MEMORY_TO_INPUT_RATIO:
                recommendations.append(
                    "Memory grows far beyond the input size; release parsed "
                    "documents before parsing the next one"
                )
                break

        if not recommendations:
            recommendations.append("Performance appears optimal based on current analysis")
        return recommendations

    def clear_sessions(self) -> None:
        """Clear all stored profiling sessions."""
        session_count = len(self.sessions)
        self.sessions.clear()
        self.current_session = None
        self.logger.info("Cleared profiling sessions", extra={"cleared_count": session_count})


class LayerProfiler:
    """Context manager for profiling one stage."""

    def __init__(self, profiler: PerformanceProfiler, session: ProfilingSession, layer_name: str):
        self.profiler = profiler
        self.session = session
        self.layer_name = layer_name
        self.layer_perf: Optional[LayerPerformance] = None

    def __enter__(self) -> LayerPerformance:
        memory, cpu = self.profiler.sample()
        self.layer_perf = LayerPerformance(
            layer_name=self.layer_name,
            start_time=time.perf_counter(),
            end_time=0.0,
            memory_start=memory,
            memory_end=0,
            cpu_percent=cpu,
        )
        return self.layer_perf

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        if self.layer_perf is None:
            return
        self.layer_perf.end_time = time.perf_counter()
        memory, cpu = self.profiler.sample()
        self.layer_perf.memory_end = memory
        if cpu:
            self.layer_perf.cpu_percent = cpu
        self.session.layers.append(self.layer_perf)


def profile_file(
    file_path: Union[str, Path],
    iterations: int = 10,
    config: Optional[ParserConfig] = None,
    profiler: Optional[PerformanceProfiler] = None,
) -> PerformanceReport:
    """Read, parse and re-serialize a document ``iterations`` times.

    ``.docx`` archives are profiled through their document part.

    Raises:
        ValueError: If ``iterations`` is not positive
        WordMLError: If reading, parsing or serializing fails
    """

    if iterations <= 0:
        raise ValueError("iterations must be > 0")

    path = Path(file_path)
    profiler = profiler or PerformanceProfiler()
    parser = DocumentParser(config)
    strip_bom = parser.config.strip_bom

    for iteration in range(iterations):
        session = profiler.start_session(f"{path.name}_iteration_{iteration}")
        session.metadata = {"file": str(path), "iteration": iteration}

        with profiler.profile_layer(session, STAGE_READ) as layer:
            if path.suffix.lower() == ".docx":
                data = read_docx_part(path)
            else:
                data = path.read_bytes()
            text = data.decode("utf-8-sig" if strip_bom else "utf-8")
            layer.operations_count = len(data)
        session.input_size = len(data)

        with profiler.profile_layer(session, STAGE_PARSE) as layer:
            document = parser.parse(text)
            layer.operations_count = document.total_elements

        with profiler.profile_layer(session, STAGE_SERIALIZE) as layer:
            layer.operations_count = len(document.to_string())

        profiler.end_session(session)

    return profiler.generate_report()
