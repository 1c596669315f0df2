"""Line-delimited JSON-RPC over stdin/stdout.

One request per line in, one response per line out. Requests are handled
concurrently; responses are written as they complete, so callers match
them by id. Logs go to stderr, never stdout.
"""

import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

from walletmcp.rpc.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class StdioServer:
    """Reads requests from a text stream and writes responses to another."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        reader: Optional[TextIO] = None,
        writer: Optional[TextIO] = None,
    ):
        self.dispatcher = dispatcher
        self.reader = reader or sys.stdin
        self.writer = writer or sys.stdout
        self._write_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    async def serve(self) -> None:
        """Serve until end of input, then wait for in-flight requests."""
        logger.info(f"Serving JSON-RPC on stdio ({', '.join(self.dispatcher.methods)})")
        while True:
            line = await asyncio.to_thread(self.reader.readline)
            if not line:
                break
            if not line.strip():
                continue
            task = asyncio.create_task(self._handle(line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if self._tasks:
            await asyncio.gather(*self._tasks)
        logger.info("stdin closed, stdio server stopping")

    async def _handle(self, line: str) -> None:
        response = await self.dispatcher.handle_text(line)
        payload = json.dumps(response, separators=(",", ":"))
        async with self._write_lock:
            self.writer.write(payload + "\n")
            self.writer.flush()
