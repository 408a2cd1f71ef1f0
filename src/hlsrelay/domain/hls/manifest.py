"""Manifest rewriting: route every key and media reference back through the relay.

Line order, line count, blank lines and the line separator convention of
the input are preserved exactly. Tag and comment lines are emitted
byte-identical; only ``#EXT-X-KEY`` URIs and media reference lines change.
"""

from __future__ import annotations

import re

import structlog

from hlsrelay.domain.entities.relay import LineKind, ResourceRole
from hlsrelay.domain.exceptions import MalformedReferenceError
from hlsrelay.domain.hls.classifier import BOM
from hlsrelay.domain.hls.resolver import resolve_reference
from hlsrelay.domain.ports.reference_emitter import ReferenceEmitterPort

log = structlog.get_logger(__name__)

_KEY_TAG = "#EXT-X-KEY"
_KEY_URI_RE = re.compile(r'URI="([^"]+)"')


def classify_line(line: str) -> LineKind:
    stripped = line.strip()
    if stripped.startswith(_KEY_TAG) and _KEY_URI_RE.search(stripped):
        return LineKind.KEY_DIRECTIVE
    if not stripped or stripped.startswith("#"):
        return LineKind.COMMENT_OR_BLANK
    return LineKind.MEDIA_REFERENCE


async def _rewrite_line(
    line: str,
    base_url: str,
    referer: str | None,
    emit: ReferenceEmitterPort,
) -> str:
    kind = classify_line(line)

    if kind is LineKind.COMMENT_OR_BLANK:
        return line

    if kind is LineKind.KEY_DIRECTIVE:
        match = _KEY_URI_RE.search(line)
        assert match is not None
        resolved = resolve_reference(match.group(1), base_url)
        replacement = await emit(resolved, referer, ResourceRole.KEY)
        return line[: match.start(1)] + replacement + line[match.end(1) :]

    resolved = resolve_reference(line.strip(), base_url)
    return await emit(resolved, referer, ResourceRole.SEGMENT)


async def rewrite_manifest(
    content: str,
    base_url: str,
    referer: str | None,
    emit: ReferenceEmitterPort,
) -> str:
    """Rewrite an HLS manifest so its references point at the relay.

    Args:
        content: Decoded manifest text.
        base_url: Resolution base, see ``base_url_from``.
        referer: Referer to carry along with every emitted reference.
        emit: Strategy producing the relay URL for a resolved reference.

    A reference that cannot be resolved is passed through unchanged.
    Errors raised by *emit* (e.g. store outages) propagate.
    """
    # A leading BOM is not part of the first line.
    bom = BOM if content.startswith(BOM) else ""
    content = content[len(bom) :]

    out: list[str] = []
    rewritten = 0
    for raw_line in content.split("\n"):
        # Keep CRLF manifests CRLF.
        if raw_line.endswith("\r"):
            line, terminator = raw_line[:-1], "\r"
        else:
            line, terminator = raw_line, ""

        try:
            new_line = await _rewrite_line(line, base_url, referer, emit)
        except MalformedReferenceError as e:
            log.warning("manifest_line_unresolvable", detail=e.detail)
            new_line = line

        if new_line is not line:
            rewritten += 1
        out.append(new_line + terminator)

    log.debug("manifest_rewritten", lines=len(out), rewritten=rewritten)
    return bom + "\n".join(out)
