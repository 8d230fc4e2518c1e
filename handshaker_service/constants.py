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

"""Fixed protocol values shared by the fake handshaker.

None of these are computed: frames and keys are canned test fixtures.
"""

from enum import IntEnum


class TLSVersion(IntEnum):
    TLS1_2 = 0
    TLS1_3 = 1


class Ciphersuite(IntEnum):
    AES_128_GCM_SHA256 = 0
    AES_256_GCM_SHA384 = 1
    CHACHA20_POLY1305_SHA256 = 2


GRPC_APP_PROTOCOL = "grpc"

CLIENT_HELLO_FRAME = b"ClientHello"
CLIENT_FINISHED_FRAME = b"ClientFinished"
SERVER_FRAME = b"ServerHelloAndFinished"

# A responder started with the application protocol bytes treats them as a ClientHello
SERVER_START_HELLO_BYTES = GRPC_APP_PROTOCOL.encode()

IN_KEY = b"k" * 32
OUT_KEY = b"j" * 32

REQUIRED_TLS_VERSION = max(TLSVersion)
RESULT_CIPHERSUITE = Ciphersuite.CHACHA20_POLY1305_SHA256

SERVICE_NAME = "s2a.proto.S2AService"
SET_UP_SESSION_METHOD = "SetUpSession"
SET_UP_SESSION_PATH = f"/{SERVICE_NAME}/{SET_UP_SESSION_METHOD}"
