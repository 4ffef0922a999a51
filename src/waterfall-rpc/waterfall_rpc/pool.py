import logging
import random
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .errors import ProtocolRejection
from .models import RpcRequest

DEFAULT_FALLBACK_DELAY = 5.0

logger = logging.getLogger(__name__)


class DispatchPool:
    """
    Waterfall dispatch over a fixed set of endpoint handles.

    Every call starts at a random member and walks the pool in order, wrapping
    around, until one member answers. A protocol rejection ends the walk at
    once; any other failure moves on to the next member after ``fallback_delay``
    seconds. When all members fail, the first failure is raised.
    """

    def __init__(
        self,
        handles: Sequence[Any],
        fallback_delay: float = DEFAULT_FALLBACK_DELAY,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not handles:
            raise ValueError("DispatchPool needs at least one endpoint handle.")
        self._handles: Tuple[Any, ...] = tuple(handles)
        self.fallback_delay = float(fallback_delay)
        self._rng = rng or random.Random()
        self._sleep = sleep

    def __len__(self) -> int:
        return len(self._handles)

    @property
    def size(self) -> int:
        return len(self._handles)

    @property
    def handles(self) -> Tuple[Any, ...]:
        return self._handles

    @property
    def urls(self) -> List[str]:
        return [getattr(h, "url", str(h)) for h in self._handles]

    def perform(self, request: RpcRequest) -> Any:
        size = len(self._handles)
        start = self._rng.randrange(size)
        errors: List[Exception] = []

        for attempt in range(size):
            handle = self._handles[(start + attempt) % size]
            if errors:
                self._sleep(self.fallback_delay)
            try:
                return handle.perform(request)
            except ProtocolRejection:
                raise
            except Exception as exc:  # pylint: disable=broad-except
                errors.append(exc)
                logger.warning(
                    "%s failed on %s (%d/%d): %s",
                    request.method,
                    getattr(handle, "url", handle),
                    attempt + 1,
                    size,
                    exc,
                )

        raise errors[0]
