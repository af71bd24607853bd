"""Cancellation token for deletion calls.

Threads in Python cannot be interrupted, so callers that want to abandon
a long wait pass a CancelToken explicitly. Deletion code only reads the
token; clearing it is left to whoever owns it.
"""

import threading


class CancelToken:
    """A one-way cancellation flag shared between a caller and deletion code.

    Example:
        >>> token = CancelToken()
        >>> worker = threading.Thread(target=delete_tree, args=(path,), kwargs={"cancel": token})
        >>> token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was signalled."""
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep for up to ``timeout`` seconds, waking early on cancellation.

        Args:
            timeout: Maximum time to sleep in seconds.

        Returns:
            True if the token is cancelled.
        """
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.is_cancelled})"
