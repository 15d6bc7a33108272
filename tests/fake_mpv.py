"""Stand-in for mpv used by the session tests.

Understands the flags the session renders, listens on ``--input-ipc-server``
and answers ``get_property``, ``set_property`` and ``quit`` requests.

Test-only switches:

``--fake-exit=N``
    exit with status ``N`` before creating the socket.
``--fake-no-ipc``
    never create the socket; sleep until killed.
``--fake-quit-after=SECONDS``
    quit on its own after a delay.
``--fake-no-path``
    answer ``path`` with an error, as mpv does before a file is loaded.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Dict, List, Tuple


def parse_argv(argv: List[str]) -> Tuple[Dict[str, str], List[str]]:
    flags: Dict[str, str] = {}
    positional: List[str] = []
    for token in argv:
        if token.startswith("--"):
            name, _, value = token[2:].partition("=")
            flags[name] = value
        else:
            positional.append(token)
    return flags, positional


async def serve(socket_path: str, flags: Dict[str, str], positional: List[str]) -> None:
    properties = {
        "path": positional[0] if positional else None,
        "pause": False,
        "fake-flags": flags,
        "fake-args": positional,
    }
    if "fake-no-path" in flags:
        del properties["path"]
    quit_event = asyncio.Event()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        def send(message: dict) -> None:
            writer.write((json.dumps(message) + "\n").encode("utf-8"))

        while True:
            line = await reader.readline()
            if not line:
                break
            request = json.loads(line)
            command = request.get("command") or []
            reply = {"request_id": request.get("request_id", 0), "error": "success"}
            if command[0] == "get_property":
                if command[1] in properties:
                    reply["data"] = properties[command[1]]
                else:
                    reply["error"] = "property not found"
            elif command[0] == "set_property":
                properties[command[1]] = command[2]
                send({"event": "property-change", "name": command[1], "data": command[2]})
            elif command[0] != "quit":
                reply["error"] = "invalid parameter"
            send(reply)
            await writer.drain()
            if command[0] == "quit":
                quit_event.set()
        writer.close()

    if os.path.exists(socket_path):
        os.unlink(socket_path)
    server = await asyncio.start_unix_server(handle, path=socket_path)
    quit_after = flags.get("fake-quit-after")
    if quit_after:
        asyncio.get_running_loop().call_later(float(quit_after), quit_event.set)
    await quit_event.wait()
    server.close()
    os.unlink(socket_path)
    # Exit without closing client connections first, like mpv does.
    os._exit(0)


async def main(argv: List[str]) -> int:
    flags, positional = parse_argv(argv)
    if "fake-exit" in flags:
        return int(flags["fake-exit"] or 1)
    if "fake-no-ipc" in flags or "input-ipc-server" not in flags:
        await asyncio.sleep(3600)
        return 0
    await serve(flags["input-ipc-server"], flags, positional)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
