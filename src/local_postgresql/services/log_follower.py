"""Background streaming of container output into the logging system."""

import threading
from typing import Optional


class ContainerLogFollower:
    """Forwards every line a container writes to a logger until it stops."""

    def __init__(self, logger, join_timeout: float = 5.0):
        self.logger = logger
        self.join_timeout = join_timeout
        self._thread: Optional[threading.Thread] = None

    def start(self, wrapped_container, label: str):
        self._thread = threading.Thread(
            target=self._forward,
            args=(wrapped_container, label),
            name=f"container-log-{label}",
            daemon=True,
        )
        self._thread.start()

    def _forward(self, wrapped_container, label: str):
        try:
            for chunk in wrapped_container.logs(stream=True, follow=True):
                text = chunk.decode("utf-8", errors="replace") if isinstance(chunk, bytes) else str(chunk)
                for line in text.splitlines():
                    if line.strip():
                        self.logger.info("[%s] %s", label, line.rstrip())
        except Exception as exc:
            # Stream ends abruptly when the container is removed.
            self.logger.debug("Log stream for %s closed: %s", label, exc)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self):
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(self.join_timeout)
