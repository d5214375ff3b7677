"""Cached network snapshot, refreshed on a fixed interval by a daemon thread."""

import threading

import structlog

from config import get_settings
from pacrewards.services._helpers import utc_now
from pacrewards.services.interfaces import NetworkClient
from pacrewards.services.schemas.network import NetworkSnapshot

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class NetworkInfoCache:
    """Holds the latest peer snapshot; readers never trigger a remote call
    once the first snapshot is in place, so results may lag by one interval."""

    def __init__(self, client: NetworkClient, refresh_interval: float | None = None) -> None:
        self.client: NetworkClient = client
        self.refresh_interval: float = (
            refresh_interval
            if refresh_interval is not None
            else get_settings().network.refresh_interval
        )
        self._lock: threading.Lock = threading.Lock()
        self._snapshot: NetworkSnapshot | None = None
        self._stop: threading.Event = threading.Event()
        self._thread: threading.Thread | None = None

    def refresh(self) -> NetworkSnapshot:
        fetched: NetworkSnapshot = self.client.get_network_info()
        if fetched.fetched_at is None:
            fetched = NetworkSnapshot(
                network_name=fetched.network_name,
                peers=fetched.peers,
                fetched_at=utc_now(),
            )
        with self._lock:
            self._snapshot = fetched
        logger.debug("Network snapshot refreshed", peers=len(fetched.peers))
        return fetched

    def snapshot(self) -> NetworkSnapshot:
        with self._lock:
            current: NetworkSnapshot | None = self._snapshot
        if current is None:
            return self.refresh()
        return current

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop, name="network-info-refresh", daemon=True
        )
        self._thread.start()
        logger.info("Network snapshot refresher started", interval=self.refresh_interval)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def _refresh_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.refresh()
            except Exception as e:
                # Keep serving the previous snapshot.
                logger.warning("Network snapshot refresh failed", error=str(e)[:100])
            self._stop.wait(self.refresh_interval)
