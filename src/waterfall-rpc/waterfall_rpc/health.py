"""
Sequential liveness probing of candidate endpoints.

Each candidate gets one ``eth_blockNumber`` probe bounded by ``probe_timeout``
seconds of wall-clock time. Probes run one after another so progress events
reach the sink strictly in candidate order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from .errors import NoWorkingEndpoints

DEFAULT_PROBE_TIMEOUT = 5.0

logger = logging.getLogger(__name__)


class ProgressStatus(str, Enum):
    CHECKING = "checking"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    current: int
    total: int
    url: str
    status: ProgressStatus


ProgressSink = Callable[[ProgressEvent], None]


def null_sink(event: ProgressEvent) -> None:
    return None


def log_progress(event: ProgressEvent) -> None:
    """Default sink: one log line per probe transition."""
    logger.info("[%d/%d] %s %s", event.current, event.total, event.status.value, event.url)


@dataclass
class HealthReport:
    working: List[Any] = field(default_factory=list)
    working_urls: List[str] = field(default_factory=list)


def _handle_url(handle: Any) -> str:
    return str(getattr(handle, "url", None) or getattr(handle, "rpc_url", "") or handle)


class HealthChecker:
    def __init__(self, probe_timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        if probe_timeout <= 0:
            raise ValueError("probe_timeout must be positive.")
        self.probe_timeout = float(probe_timeout)

    def validate(
        self,
        candidates: Sequence[Any],
        sink: Optional[ProgressSink] = None,
        network: Any = None,
    ) -> HealthReport:
        emit = sink if sink is not None else log_progress
        report = HealthReport()
        total = len(candidates)

        executor = ThreadPoolExecutor(max_workers=max(1, total), thread_name_prefix="rpc-probe")
        try:
            for current, handle in enumerate(candidates, start=1):
                url = _handle_url(handle)
                emit(ProgressEvent(current, total, url, ProgressStatus.CHECKING))
                if self._probe(executor, handle, url):
                    report.working.append(handle)
                    report.working_urls.append(url)
                    emit(ProgressEvent(current, total, url, ProgressStatus.SUCCESS))
                else:
                    emit(ProgressEvent(current, total, url, ProgressStatus.FAILED))
        finally:
            # A timed-out probe keeps its worker until the request returns.
            executor.shutdown(wait=False)

        if not report.working:
            raise NoWorkingEndpoints(network, checked=total)

        logger.info("%d of %d endpoints responded", len(report.working), total)
        return report

    def _probe(self, executor: ThreadPoolExecutor, handle: Any, url: str) -> bool:
        future = executor.submit(handle.get_block_number)
        try:
            height = future.result(timeout=self.probe_timeout)
        except FutureTimeout:
            logger.debug("Probe of %s timed out after %.1fs", url, self.probe_timeout)
            return False
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Probe of %s failed: %s", url, exc)
            return False
        return isinstance(height, int) and height > 0
