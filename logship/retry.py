import time
from collections.abc import Callable

from logship.schemas import ShipmentAttempt


def run_with_backoff(
    fn: Callable[[], int],
    *,
    max_attempts: int,
    initial_backoff_seconds: float,
    should_retry: Callable[[int], bool],
    sleep: Callable[[float], None] = time.sleep,
    on_backoff: Callable[[int, float], None] | None = None,
) -> list[ShipmentAttempt]:
    # No sleep before the first call.
    attempts: list[ShipmentAttempt] = []
    backoff = initial_backoff_seconds
    waited = 0.0

    for attempt in range(1, max(max_attempts, 1) + 1):
        if attempt > 1:
            if on_backoff:
                on_backoff(attempt, backoff)
            sleep(backoff)
            waited = backoff
            backoff *= 2

        status_code = fn()
        attempts.append(ShipmentAttempt(attempt_index=attempt, status_code=status_code, backoff_seconds=waited))
        if not should_retry(status_code):
            break

    return attempts
