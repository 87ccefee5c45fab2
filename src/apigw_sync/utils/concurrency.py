"""Thread-pool fan-out for independent provider calls."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass


@dataclass(frozen=True)
class Outcome[T, R]:
    """Result of applying a function to one item.

    Exactly one of ``value`` / ``error`` is meaningful: ``error`` is set
    when the call raised.
    """

    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """Whether the call succeeded."""
        return self.error is None


def fan_out[T, R](
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: int | None = None,
) -> list[Outcome[T, R]]:
    """Apply ``func`` to every item concurrently.

    Exceptions are captured per item so one failure never cancels its
    siblings. Outcomes are returned in input order.

    Args:
        func: Function to call once per item.
        items: Independent work items.
        max_workers: Thread cap. None means one thread per item.

    Returns:
        One Outcome per item, in the same order as ``items``.
    """
    if not items:
        return []

    def _run(item: T) -> Outcome[T, R]:
        try:
            return Outcome(item=item, value=func(item))
        except Exception as e:
            return Outcome(item=item, error=e)

    workers = max_workers or len(items)
    if workers == 1 or len(items) == 1:
        return [_run(item) for item in items]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="apigw") as executor:
        return list(executor.map(_run, items))


def raise_first_error[T, R](outcomes: list[Outcome[T, R]]) -> list[R]:
    """Return the values of ``outcomes``, re-raising the first captured error.

    Used by fail-fast stages that still provision siblings concurrently.
    """
    for outcome in outcomes:
        if outcome.error is not None:
            raise outcome.error
    return [outcome.value for outcome in outcomes]  # type: ignore[misc]
