"""
Integration smoke test for the lightning address gateway.

This script spins up:
1. A mock wallet domain (Starlette) publishing /.well-known/lnurlp/{user} and
   /.well-known/keysend/{user}, reached through httpx's ASGI transport so no
   TLS endpoint is needed.
2. The gateway itself under uvicorn.
3. An httpx client that queries the gateway for a handful of addresses and
   prints the responses.

Usage:
    python scripts/smoke_test.py

The script exits with code 0 if every lookup returns the expected status.
"""

import asyncio
import contextlib

import httpx
import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from lnaddress.reporting import ErrorReporter
from lnaddress.resolver import AddressResolver
from lnaddress.routes import GatewayDependencies, create_app

GATEWAY_HOST = "127.0.0.1"
GATEWAY_PORT = 18080

KNOWN_USERS = {"alice", "bob"}
KEYSEND_USERS = {"alice"}


async def lnurlp_endpoint(request: Request) -> Response:
    user = request.path_params["user"]
    if user not in KNOWN_USERS:
        return JSONResponse({"status": "ERROR", "reason": "unknown user"}, status_code=404)
    if user == "bob":
        return PlainTextResponse("maintenance")
    return JSONResponse(
        {
            "tag": "payRequest",
            "callback": f"https://wallet.test/lnurlp/{user}/callback",
            "minSendable": 1000,
            "maxSendable": 100000000,
            "metadata": f'[["text/plain","Pay {user}"]]',
        }
    )


async def keysend_endpoint(request: Request) -> Response:
    user = request.path_params["user"]
    if user not in KEYSEND_USERS:
        return JSONResponse({"status": "ERROR", "reason": "keysend disabled"}, status_code=404)
    return JSONResponse(
        {
            "status": "OK",
            "tag": "keysend",
            "pubkey": "02" + "ab" * 32,
            "customData": [{"customKey": "696969", "customValue": user}],
        }
    )


def build_mock_domain() -> Starlette:
    return Starlette(
        routes=[
            Route("/.well-known/lnurlp/{user:str}", lnurlp_endpoint, methods=["GET"]),
            Route("/.well-known/keysend/{user:str}", keysend_endpoint, methods=["GET"]),
        ],
    )


async def run_uvicorn_app(app: Starlette, host: str, port: int) -> tuple[uvicorn.Server, asyncio.Task]:
    config = uvicorn.Config(app, host=host, port=port, log_level="error")
    server = uvicorn.Server(config)
    task = asyncio.create_task(server.serve())
    # Give the server a moment to bind the port.
    await asyncio.sleep(0.3)
    return server, task


async def run_smoke_flow() -> None:
    dependencies = GatewayDependencies()
    upstream = httpx.AsyncClient(transport=httpx.ASGITransport(app=build_mock_domain()))
    dependencies.attach_resolver(AddressResolver(upstream))

    print("Starting gateway...")
    gateway, gateway_task = await run_uvicorn_app(
        create_app(dependencies, ErrorReporter()),
        GATEWAY_HOST,
        GATEWAY_PORT,
    )

    expected = {
        "alice@wallet.test": 200,
        "bob@wallet.test": 200,
        "mallory@wallet.test": 404,
        "not-an-address": 400,
    }
    failures: list[str] = []
    try:
        async with httpx.AsyncClient(base_url=f"http://{GATEWAY_HOST}:{GATEWAY_PORT}") as client:
            for address, status_code in expected.items():
                response = await client.get("/lightning-address-details", params={"ln": address})
                print(f"{address} -> {response.status_code}\n{response.text}")
                if response.status_code != status_code:
                    failures.append(f"{address}: expected {status_code}, got {response.status_code}")
    finally:
        print("Stopping gateway...")
        gateway.should_exit = True
        with contextlib.suppress(asyncio.CancelledError):
            await gateway_task

    if failures:
        raise SystemExit("Smoke test failed:\n" + "\n".join(failures))
    print("Smoke test succeeded")


if __name__ == "__main__":
    try:
        asyncio.run(run_smoke_flow())
    except KeyboardInterrupt:
        print("Smoke test interrupted.")
