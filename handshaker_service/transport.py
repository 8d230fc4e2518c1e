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

"""Relay between one SetUpSession stream and its negotiator."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Callable

from .errors import status_name
from .logging_utils import StructuredLogger, get_logger
from .metrics import RESPONSES, SESSIONS_ACTIVE, SESSIONS_COMPLETED, SESSIONS_OPENED, UNKNOWN_REQUESTS
from .models import SessionReq, SessionResp
from .negotiator import SessionNegotiator
from .registry import SessionRegistry

NegotiatorFactory = Callable[[], SessionNegotiator]


class SessionTransport:
    """Delivers the requests of one stream to a negotiator of its own.

    The negotiator is created once per transport, so no two streams ever
    share handshake state.
    """

    def __init__(
        self,
        negotiator_factory: NegotiatorFactory = SessionNegotiator,
        registry: SessionRegistry | None = None,
        logger: StructuredLogger | None = None,
    ):
        self.negotiator = negotiator_factory()
        self.registry = registry
        self.logger = logger or get_logger("transport")

    @property
    def session_id(self) -> str:
        return self.negotiator.session.session_id

    async def relay(self, requests: AsyncIterable[SessionReq]) -> AsyncIterator[SessionResp]:
        """Yield one response per recognized inbound request until the inbound stream ends."""
        self._open()
        try:
            async for req in requests:
                resp = self.negotiator.process(req)
                if resp is None:
                    UNKNOWN_REQUESTS.inc()
                    continue
                self._record(resp)
                yield resp
        except Exception as err:
            self.logger.warning(
                "session_stream_error",
                session_id=self.session_id,
                state=self.negotiator.state.name,
                error=repr(err),
                exc_info=err,
            )
            raise
        else:
            self.logger.info("session_stream_completed", session_id=self.session_id, state=self.negotiator.state.name)
        finally:
            self._close()

    def _open(self) -> None:
        if self.registry is not None:
            self.registry.add_session(self.negotiator.session)
        SESSIONS_OPENED.inc()
        SESSIONS_ACTIVE.inc()
        self.logger.debug("session_stream_opened", session_id=self.session_id)

    def _close(self) -> None:
        SESSIONS_ACTIVE.dec()
        if self.registry is not None:
            self.registry.remove_session(self.session_id)

    def _record(self, resp: SessionResp) -> None:
        RESPONSES.labels(code=status_name(resp.status.code)).inc()
        if resp.result is not None:
            SESSIONS_COMPLETED.labels(role=self.negotiator.role.value).inc()
            self.logger.info(
                "session_completed", session_id=self.session_id, role=self.negotiator.role.value
            )
