"""ContextComparator for tracing one name across several contexts."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor

from envtrace.core.simulator import TraceEngine
from envtrace.knowledge.catalog import context_info
from envtrace.models.compare import ComparisonResult
from envtrace.models.operation import TargetKind
from envtrace.models.platform import Context
from envtrace.models.trace import TraceResult
from envtrace.utils.errors import ValidationError
from envtrace.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 4


class ContextComparator:
    """Run independent simulations of the same name and collect final values.

    Each context is simulated from scratch on a worker thread; results are
    keyed in request order regardless of completion order. Requesting a
    context twice simulates it twice.

    Example:
        comparator = ContextComparator(engine)
        result = comparator.compare("PATH", TargetKind.VARIABLE, [Context.LOGIN, Context.LAUNCHD_AGENT])
        for key, value in result.results.items():
            print(key, value)
    """

    def __init__(self, engine: TraceEngine, max_workers: int = DEFAULT_MAX_WORKERS):
        self.engine = engine
        self.max_workers = max_workers

    def compare(self, name: str, kind: TargetKind, contexts: list[Context]) -> ComparisonResult:
        """Trace ``name`` in every context.

        Raises:
            ValidationError: If no contexts are given
            InvalidContextError: If a context does not exist on the engine's platform
        """
        if not contexts:
            raise ValidationError("At least one context is required", field="contexts")

        # fail before starting any work
        infos = [context_info(self.engine.platform, ctx) for ctx in contexts]

        workers = max(1, min(self.max_workers, len(contexts)))
        logger.debug("Comparing %s across %d contexts with %d workers", name, len(contexts), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="envtrace-compare") as executor:
            futures: list[Future[TraceResult]] = [
                executor.submit(self.engine.trace, name, kind, ctx) for ctx in contexts
            ]
            traces = [future.result() for future in futures]

        results: dict[str, str | None] = {}
        labels: dict[str, str] = {}
        for info, trace in zip(infos, traces):
            results[info.key] = trace.final_value
            labels[info.key] = info.label

        return ComparisonResult(name=name, kind=kind, results=results, labels=labels, traces=traces)
