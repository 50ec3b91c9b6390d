# Copyright 2026 Firefly Software Solutions Inc.
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
"""Token codec — secure random tokens and timing-safe comparison.

Stateless.  Tokens are hex-encoded output of the operating system CSPRNG
(:mod:`secrets`); comparison never short-circuits on content.
"""

from __future__ import annotations

import hmac
import secrets

from csrfly.kernel.exceptions import TokenGenerationException


def generate_token(byte_length: int) -> str:
    """Generate a cryptographically-secure token.

    Args:
        byte_length: Number of random bytes; the hex result is twice as long.

    Returns:
        A lower-case hex string of ``2 * byte_length`` characters.

    Raises:
        ValueError: If *byte_length* is not positive.
        TokenGenerationException: If the OS entropy source fails.
    """
    if byte_length < 1:
        raise ValueError(f"byte_length must be positive, got {byte_length}")
    try:
        return secrets.token_hex(byte_length)
    except (OSError, NotImplementedError) as exc:
        raise TokenGenerationException(
            "Secure random source unavailable",
            code="ENTROPY_UNAVAILABLE",
        ) from exc


def constant_time_equals(a: str, b: str) -> bool:
    """Return ``True`` iff *a* equals *b*, in time independent of content.

    A length difference returns ``False`` straight away: token length is
    not secret.  Equal-length inputs are compared byte-for-byte with
    :func:`hmac.compare_digest`, which accumulates differences over the
    whole buffer before deciding.
    """
    left = a.encode("utf-8")
    right = b.encode("utf-8")
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)
