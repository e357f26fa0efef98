"""Test helpers shared across modules."""

import asyncio


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def eventually(predicate, timeout: float = 2.0, interval: float = 0.01) -> None:
    """Wait until ``predicate()`` is true or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


class MockIRCServer:
    """Records every line it receives and welcomes the client after USER."""

    def __init__(self, welcome: bool = True):
        self.welcome = welcome
        self.lines: asyncio.Queue = asyncio.Queue()
        self.raw: list[bytes] = []
        self.writer = None
        self.port = None

    async def handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.writer = writer
        try:
            while True:
                raw = await reader.readline()
                if not raw:
                    break
                self.raw.append(raw)
                line = raw.decode("utf-8").rstrip("\r\n")
                await self.lines.put(line)
                if line.startswith("USER "):
                    if not self.welcome:
                        break
                    await self.send(":irc.test 001 testbot :Welcome to the test network")
                elif line == "QUIT":
                    break
        finally:
            writer.close()

    async def send(self, line: str) -> None:
        self.writer.write(line.encode("utf-8") + b"\r\n")
        await self.writer.drain()

    async def next_line(self, timeout: float = 2.0) -> str:
        return await asyncio.wait_for(self.lines.get(), timeout)


async def start_mock_server(mock: MockIRCServer) -> asyncio.Server:
    server = await asyncio.start_server(mock.handle, "127.0.0.1", 0)
    mock.port = server.sockets[0].getsockname()[1]
    return server
