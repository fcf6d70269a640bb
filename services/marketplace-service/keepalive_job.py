import logging
import threading
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class KeepAliveJob:
    """Background thread that pings a URL on a fixed interval."""

    def __init__(self, url: str, interval_seconds: int = 840, timeout: int = 10):
        self.url = url
        self.interval_seconds = interval_seconds
        self.timeout = timeout
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        """Start the ping thread."""
        self._thread = threading.Thread(target=self._run, name="keepalive-job", daemon=True)
        self._thread.start()
        logger.info(f"Keep-alive job started (GET {self.url} every {self.interval_seconds}s)")
        return self._thread

    def ping(self) -> bool:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            logger.info(f"Keep-alive ping returned {response.status_code}")
            return response.ok
        except requests.RequestException as e:
            logger.error(f"Keep-alive ping failed: {e}")
            return False

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.ping()

    def stop(self) -> None:
        """Stop the ping thread."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.timeout)
        logger.info("Keep-alive job stopped")
