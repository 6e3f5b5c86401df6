"""
Retry, deadlines and cancellation.

Shows per-call timeout, a caller deadline and cancelling a call from
another thread while it waits between retries.
"""

import threading

from request_client import (
    CancelledError,
    ClientConfig,
    DeadlineExceededError,
    RequestClient,
    RequestContext,
    RequestSpec,
    ServerError,
)


def retry_on_server_errors():
    """5xx responses are retried max_retries times with a fixed pause."""
    print("\n=== Retry on 5xx ===")

    config = ClientConfig.create(base_url="https://httpbin.org", max_retries=2, retry_backoff=0.5)
    with RequestClient(config) as client:
        try:
            client.get("/status/503")
        except ServerError as e:
            print(f"Gave up after {len(e.attempts)} attempts: {e}")


def deadline():
    """Narrower of caller deadline and per-call timeout wins."""
    print("\n=== Deadline ===")

    with RequestClient(base_url="https://httpbin.org") as client:
        try:
            client.do(RequestContext.with_deadline_in(1.0), RequestSpec("GET", "/delay/5", timeout=10))
        except DeadlineExceededError as e:
            print(f"Deadline exceeded: {e}")


def cancel_from_another_thread():
    """ctx.cancel() wakes the retry pause immediately."""
    print("\n=== Cancellation ===")

    ctx = RequestContext.background()
    threading.Timer(1.0, ctx.cancel).start()

    config = ClientConfig.create(base_url="https://httpbin.org", max_retries=10, retry_backoff=5)
    with RequestClient(config) as client:
        try:
            client.get("/status/500", ctx=ctx)
        except CancelledError as e:
            print(f"Cancelled after {len(e.attempts)} attempt(s)")


if __name__ == "__main__":
    retry_on_server_errors()
    deadline()
    cancel_from_another_thread()
