"""Reference Emitter Port - turns a resolved origin URL into a relay URL."""

from __future__ import annotations

from typing import Protocol

from hlsrelay.domain.entities.relay import ResourceRole


class ReferenceEmitterPort(Protocol):
    """Strategy used by the manifest rewriter.

    Implementations:
      - DirectEmitter (origin URL + referer as query parameters)
      - TokenEmitter (registers the target in the token store)
    """

    async def __call__(
        self,
        resolved: str,
        referer: str | None,
        role: ResourceRole = ResourceRole.SEGMENT,
    ) -> str: ...
