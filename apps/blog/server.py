"""
Blog service lifecycle.

start() connects the store and binds the listener, stop() releases both.
The running server is an explicit handle rather than module state, so tests
can run several services side by side.

Usage:
    python -m apps.blog.server
"""
import asyncio
import logging
import socket
from dataclasses import dataclass

import uvicorn

from apps.blog.config import DATABASE_URL, HOST, PORT
from apps.blog.main import create_app
from apps.shared.database import DocumentStore

logger = logging.getLogger(__name__)

STARTUP_POLL_INTERVAL = 0.05


@dataclass
class RunningServer:
    store: DocumentStore
    server: uvicorn.Server
    task: asyncio.Task
    host: str
    port: int


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a listening TCP socket. Raises OSError if the address is taken."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen()
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


async def start(database_url: str = DATABASE_URL, port: int = PORT, host: str = HOST) -> RunningServer:
    """
    Connect to the store, then start listening on host:port.

    Returns once the server accepts connections. If startup fails or is
    cancelled after the store connected, the listener is shut down and the
    store disconnected before the error is re-raised.
    """
    store = DocumentStore(database_url)
    await store.connect()

    sock = None
    server = None
    task = None
    try:
        sock = bind_socket(host, port)

        # Store lifetime is owned here, not by the app's lifespan
        config = uvicorn.Config(create_app(store), lifespan="off", log_level="info")
        server = uvicorn.Server(config)
        task = asyncio.create_task(server.serve(sockets=[sock]))

        while not server.started:
            if task.done():
                task.result()
                raise RuntimeError("Blog service exited during startup")
            await asyncio.sleep(STARTUP_POLL_INTERVAL)
    except BaseException:
        await abort_startup(store, sock, server, task)
        raise

    bound_port = sock.getsockname()[1]
    logger.info(f"Blog service listening on port {bound_port}")
    return RunningServer(store=store, server=server, task=task, host=host, port=bound_port)


async def abort_startup(store, sock, server, task) -> None:
    """Release whatever a failed start() acquired. The store is always disconnected."""
    try:
        if task is not None and not task.done():
            server.should_exit = True
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if sock is not None:
            sock.close()
    finally:
        await store.disconnect()


async def stop(running: RunningServer) -> None:
    """Disconnect the store, then close the listener. Both are always attempted."""
    try:
        await running.store.disconnect()
    finally:
        logger.info("Closing blog service")
        running.server.should_exit = True
        await running.task


async def serve() -> None:
    running = await start(DATABASE_URL, PORT, HOST)
    try:
        # Returns when uvicorn handles SIGINT/SIGTERM
        await running.task
    finally:
        await stop(running)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(serve())


if __name__ == "__main__":
    main()
