import asyncio

from pii_agent.logging.logger import Log
from pii_agent.mapping.models import Entity, EntityType
from pii_agent.revert.matching import order_for_revert, rewrite, still_detectable
from pii_agent.revert.models import RevertAttempt, RevertReport, RevertScope
from pii_agent.surface.base import RenderedView, TextSegment


class RevertEngine:
    """Repeatedly rewrites a rendered view until no substitute is detectable.

    Each attempt rewrites exact and reformatted substitutes, plus location
    components when location entities are mapped. When the resolved count
    stops improving the scope widens from the response containers to the
    whole document. The engine is best-effort: failures are logged and
    reported, never raised.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        interval_seconds: float = 0.4,
        stall_after_attempts: int = 2,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._interval = interval_seconds
        self._stall_after = stall_after_attempts

    async def run(self, view: RenderedView, entities: list[Entity]) -> RevertReport:
        filled = order_for_revert(entities)
        if not filled:
            return RevertReport(restored_count=0)

        aggressive = any(entity.type is EntityType.LOCATION for entity in filled)
        scope = RevertScope.RESPONSE
        touched: set[str] = set()
        attempts: list[RevertAttempt] = []
        unresolved = list(filled)
        previous_resolved: int | None = None

        for number in range(1, self._max_attempts + 1):
            try:
                segments = (
                    view.document_segments()
                    if scope is RevertScope.DOCUMENT
                    else view.response_segments()
                )
                replacements = self._rewrite(segments, filled, aggressive, touched)
                unresolved = still_detectable(view.document_text(), filled)
            except Exception as exc:
                Log.error(f"Revert attempt {number} failed: {exc}")
                break

            resolved = len(filled) - len(unresolved)
            attempts.append(
                RevertAttempt(
                    number=number,
                    scope=scope,
                    aggressive=aggressive,
                    replacements=replacements,
                    resolved_count=resolved,
                )
            )
            Log.debug(
                f"Revert attempt {number} ({scope.value}): "
                f"{replacements} replacements, {resolved}/{len(filled)} resolved"
            )
            if not unresolved:
                break

            if (
                scope is RevertScope.RESPONSE
                and number >= self._stall_after
                and resolved == previous_resolved
            ):
                Log.info(f"Revert stalled at {resolved}/{len(filled)}, scanning whole document")
                scope = RevertScope.DOCUMENT
            previous_resolved = resolved

            if number < self._max_attempts:
                await asyncio.sleep(self._interval)

        if unresolved:
            Log.warning(f"Revert left {len(unresolved)} substitute(s) in place")
        unresolved_ids = {entity.id for entity in unresolved}
        return RevertReport(
            restored_count=len(touched - unresolved_ids),
            unresolved=unresolved,
            attempts=attempts,
        )

    @staticmethod
    def _rewrite(
        segments: list[TextSegment],
        entities: list[Entity],
        aggressive: bool,
        touched: set[str],
    ) -> int:
        replacements = 0
        for segment in segments:
            text, ids = rewrite(segment.text, entities, aggressive=aggressive)
            if text != segment.text:
                segment.text = text
                replacements += len(ids)
            touched |= ids
        return replacements
