import time


def now_ms() -> int:
    """Current time as epoch milliseconds.

    Wrapped so services can take an injectable clock in tests.
    """
    return int(time.time() * 1000)
