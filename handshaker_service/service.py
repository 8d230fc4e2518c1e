# Copyright 2025 Fake Handshaker Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Fake Handshaker Service.

A gRPC service exposing the SetUpSession bidirectional stream. Each stream
runs its own simulated handshake; no cryptography takes place.

An HTTP sidecar reports health, live sessions and Prometheus metrics.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import grpc
import uvicorn
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import ValidationError

from .config import Settings
from .constants import SERVICE_NAME, SET_UP_SESSION_METHOD
from .credentials import load_server_credentials
from .logging_utils import configure_logging, get_logger
from .metrics import render_latest
from .models import SessionReq, SessionResp
from .negotiator import SessionNegotiator
from .registry import SessionRegistry
from .transport import NegotiatorFactory, SessionTransport

logger = get_logger("service")


class HandshakerServicer:
    """Serves SetUpSession with one transport, and so one session, per stream."""

    def __init__(
        self, registry: SessionRegistry | None = None, negotiator_factory: NegotiatorFactory = SessionNegotiator
    ):
        self.registry = registry if registry is not None else SessionRegistry()
        self.negotiator_factory = negotiator_factory

    async def SetUpSession(  # noqa: N802 gRPC method name
        self, request_iterator: AsyncIterator[SessionReq], ctx: Any
    ) -> AsyncIterator[SessionResp]:
        transport = SessionTransport(self.negotiator_factory, registry=self.registry)
        async for resp in transport.relay(request_iterator):
            yield resp


def decode_request(data: bytes) -> SessionReq:
    """Decode one inbound request; undecodable input becomes an unset request."""
    try:
        return SessionReq.from_wire(data)
    except ValidationError as err:
        logger.warning("session_request_malformed", size=len(data), errors=err.error_count())
        return SessionReq()


def add_handshaker_servicer_to_server(servicer: HandshakerServicer, server: grpc.aio.Server) -> None:
    handlers = {
        SET_UP_SESSION_METHOD: grpc.stream_stream_rpc_method_handler(
            servicer.SetUpSession,
            request_deserializer=decode_request,
            response_serializer=SessionResp.to_wire,
        )
    }
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))


def create_health_app(registry: SessionRegistry) -> FastAPI:
    app = FastAPI(title="Fake Handshaker")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True, "active_sessions": len(registry)}

    @app.get("/sessions")
    def sessions() -> dict[str, dict[str, Any]]:
        return registry.get_all_sessions_info()

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(content=render_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


async def start_server(settings: Settings, registry: SessionRegistry | None = None) -> tuple[grpc.aio.Server, int]:
    """Start the gRPC server and return it with its bound port."""
    server = grpc.aio.server()
    add_handshaker_servicer_to_server(HandshakerServicer(registry), server)
    credentials = load_server_credentials(settings)
    if credentials is None:
        port = server.add_insecure_port(settings.address)
    else:
        port = server.add_secure_port(settings.address, credentials)
    await server.start()
    logger.info("handshaker_listening", host=settings.host, port=port, tls=settings.tls_enabled)
    return server, port


async def serve(settings: Settings | None = None) -> None:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    registry = SessionRegistry()
    grpc_server, _ = await start_server(settings, registry)

    tasks = [asyncio.ensure_future(grpc_server.wait_for_termination())]
    if settings.enable_health:
        config = uvicorn.Config(
            create_health_app(registry),
            host=settings.health_host,
            port=settings.health_port,
            log_level=settings.log_level.lower(),
        )
        tasks.append(asyncio.ensure_future(uvicorn.Server(config).serve()))
        logger.info("health_listening", host=settings.health_host, port=settings.health_port)

    # Either server exiting shuts the other down
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        await grpc_server.stop(grace=1.0)
        for task in tasks:
            task.cancel()


if __name__ == "__main__":
    asyncio.run(serve())
