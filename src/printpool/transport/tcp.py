"""Raw TCP (port 9100) printer transport."""

import asyncio
import logging

from printpool.transport.base import (
    CONNECT_FAILED,
    SOCKET_TIMEOUT,
    TIMEOUT,
    WRITE_FAILED,
    BaseTransport,
    SendResult,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0


class TCPTransport(BaseTransport):
    """One connection per send: connect, write, close.

    A single timeout covers the whole operation from the connection attempt
    until the payload has been handed to the operating system. Connections
    are never reused, so a wedged printer cannot hold up another.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    async def send(self, address: str, port: int, payload: bytes) -> SendResult:
        """Send a payload to address:port, reporting the outcome."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            result = await asyncio.wait_for(self._deliver(address, port, payload), timeout=self.timeout)
        except TimeoutError:
            result = SendResult.failure(TIMEOUT)

        elapsed_ms = (loop.time() - started) * 1000
        if result.ok:
            logger.debug(f"Sent {len(payload)} bytes to {address}:{port} in {elapsed_ms:.0f}ms")
        else:
            logger.warning(f"Send to {address}:{port} failed after {elapsed_ms:.0f}ms: {result.error}")
        return result

    async def _deliver(self, address: str, port: int, payload: bytes) -> SendResult:
        writer: asyncio.StreamWriter | None = None
        ok = False
        try:
            try:
                _reader, writer = await asyncio.open_connection(address, port)
            except TimeoutError:
                # OS-level connect timeout (ETIMEDOUT)
                return SendResult.failure(SOCKET_TIMEOUT)
            except OSError as e:
                logger.debug(f"Connect to {address}:{port} failed: {e}")
                return SendResult.failure(CONNECT_FAILED)

            try:
                # Zero high-water mark: drain() returns only once the buffer is flushed
                writer.transport.set_write_buffer_limits(high=0)
                writer.write(payload)
                await writer.drain()
            except TimeoutError:
                return SendResult.failure(SOCKET_TIMEOUT)
            except OSError as e:
                logger.debug(f"Write to {address}:{port} failed: {e}")
                return SendResult.failure(WRITE_FAILED)

            ok = True
            return SendResult.success()
        finally:
            if writer is not None:
                if ok:
                    writer.close()
                    try:
                        await writer.wait_closed()
                    except OSError as e:
                        # Payload was already flushed; a reset during teardown is not a failure
                        logger.debug(f"Close of {address}:{port} reported: {e}")
                else:
                    writer.transport.abort()
