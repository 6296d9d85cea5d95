from __future__ import annotations

import logging
import threading

from .synchronizer import RegistrySynchronizer

LOGGER = logging.getLogger('skychart.poller')


class RegistryPoller:
    def __init__(self, synchronizer: RegistrySynchronizer, interval_seconds: float) -> None:
        self.synchronizer = synchronizer
        self.interval_seconds = max(1.0, float(interval_seconds))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name='skychart-poller', daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> None:
        try:
            outcome = self.synchronizer.run_pass()
            LOGGER.debug('sync pass finished outcome=%s', outcome.value)
        except Exception:
            LOGGER.exception('registry sync pass failed; keeping previous snapshot')

    def run(self) -> None:
        LOGGER.info(
            'starting registry poller repo=%s interval_seconds=%s',
            getattr(self.synchronizer.source, 'repo', '?'),
            self.interval_seconds
        )
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval_seconds)
