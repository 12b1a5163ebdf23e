# src/blob_archiver/signals.py
"""
Translates SIGINT and SIGTERM into an `asyncio.Event`.

Copy polling waits on this event, so a shutdown request stops waiting for
pending copies right away. Server-side copy jobs that were already started
keep running in the storage service.
"""

import asyncio
import logging
import os
import signal
from typing import Any, Optional, Tuple

logger: logging.Logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignals:
    """
    An async context manager that sets an event on the first shutdown signal.

    A second signal forces an immediate exit. Handlers are registered on the
    running event loop and removed again on exit.
    """

    def __init__(self) -> None:
        self._event: asyncio.Event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self) -> asyncio.Event:
        """
        Registers the signal handlers on the running loop.

        Returns:
            asyncio.Event: Set once a shutdown signal has been received.
        """
        self._loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError) as e:
                # Not supported on Windows event loops or outside the main thread
                logger.warning(f"Could not set handler for {sig.name}: {e}")
        return self._event

    async def __aexit__(self, *args: Any) -> None:
        """Removes the signal handlers."""
        if self._loop is None:
            return
        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError) as e:
                logger.warning(f"Could not remove handler for {sig.name}: {e}")
        self._loop = None

    def _on_signal(self, sig: signal.Signals) -> None:
        if self._event.is_set():
            logger.critical("Received second shutdown signal. Forcing immediate exit.")
            os._exit(1)
        logger.warning(
            f"Received shutdown signal: {signal.strsignal(sig)}. "
            "No longer waiting for pending copies."
        )
        self._event.set()
