"""Bridge manager for host process lifecycle and IPC."""
import asyncio
import logging
import queue
from multiprocessing import Process, Queue
from typing import Any, Dict, Optional
from notekeeper.core.errors import TransportError
from .types import Channel, BridgeRequest, BridgeResponse, ShutdownRequest, raise_for_response
from .host import bridge_main

logger = logging.getLogger(__name__)


class BridgeManager:
    """
    Manages the desktop host process and routes calls to it.

    The client side never touches the database file: every operation is a
    named ``Channel`` call sent over ``input_queue``. A background reader
    is the only consumer of ``output_queue`` and resolves the waiting call
    by request id.
    """

    def __init__(self, db_path: str, poll_interval: float = 0.2):
        self.db_path = str(db_path)
        self.poll_interval = poll_interval
        self.input_queue: Optional[Queue] = None
        self.output_queue: Optional[Queue] = None
        self.process: Optional[Process] = None
        self._running = False
        self._pending: Dict[str, asyncio.Future] = {}
        self._reader_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the host process."""
        if self._running:
            return

        self.input_queue = Queue()
        self.output_queue = Queue()
        self.process = Process(
            target=bridge_main,
            args=(self.input_queue, self.output_queue, self.db_path),
            daemon=True,
        )
        self.process.start()
        self._running = True
        logger.info("[BridgeManager] Started host process (PID: %s)", self.process.pid)

    async def stop(self):
        """Stop the host process and fail any call still waiting."""
        if not self._running:
            return
        self._running = False

        self.input_queue.put(ShutdownRequest().model_dump())
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.process.join, 5)

        if self.process.is_alive():
            self.process.terminate()

        if self._reader_task is not None:
            await asyncio.gather(self._reader_task, return_exceptions=True)
            self._reader_task = None

        self._fail_pending(TransportError("Bridge host stopped"))
        logger.info("[BridgeManager] Stopped host process")

    async def invoke(self, channel: Channel, **args: Any) -> Any:
        """
        Send one call to the host and wait for its response.

        Returns:
            The decoded result payload of the call
        """
        if not self._running:
            raise TransportError("Bridge host is not running")

        self._ensure_reader()
        request = BridgeRequest(channel=channel, args=args)
        future = asyncio.get_running_loop().create_future()
        self._pending[request.request_id] = future

        try:
            self.input_queue.put(request.model_dump(mode="json"))
            response: BridgeResponse = await future
        finally:
            self._pending.pop(request.request_id, None)

        return raise_for_response(response)

    def _ensure_reader(self):
        if self._reader_task is None or self._reader_task.done():
            self._reader_task = asyncio.create_task(self._read_responses())

    async def _read_responses(self):
        """Background task that routes host responses to waiting calls."""
        loop = asyncio.get_running_loop()

        while self._running:
            try:
                msg = await loop.run_in_executor(
                    None,
                    lambda: self.output_queue.get(timeout=self.poll_interval)
                )
            except queue.Empty:
                if not self.process.is_alive():
                    logger.error("[BridgeManager] Host process died (exit code %s)", self.process.exitcode)
                    self._running = False
                    self._fail_pending(TransportError("Bridge host process exited"))
                    break
                continue

            response = BridgeResponse(**msg)
            future = self._pending.get(response.request_id)
            if future is None or future.done():
                logger.warning("[BridgeManager] Dropping response for unknown request %s", response.request_id)
                continue
            future.set_result(response)

    def _fail_pending(self, error: Exception):
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
