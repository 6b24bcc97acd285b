from collections.abc import Iterable

from pii_agent.surface.base import RenderedView, TextSegment


class TextView(RenderedView):
    """In-memory rendered view made of ordered text segments."""

    def __init__(self, segments: Iterable[TextSegment]) -> None:
        self._segments = list(segments)

    @classmethod
    def from_text(cls, text: str) -> "TextView":
        return cls([TextSegment(text)])

    @classmethod
    def from_fragments(
        cls,
        response: Iterable[str],
        surrounding: Iterable[str] = (),
    ) -> "TextView":
        """Build a view whose response is split across several segments.

        *surrounding* text sits outside the response containers and is only
        reachable through a document-wide scan.
        """
        segments = [TextSegment(text, in_response=False) for text in surrounding]
        segments.extend(TextSegment(text) for text in response)
        return cls(segments)

    def response_segments(self) -> list[TextSegment]:
        return [segment for segment in self._segments if segment.in_response]

    def document_segments(self) -> list[TextSegment]:
        return list(self._segments)

    def response_text(self) -> str:
        return "".join(segment.text for segment in self.response_segments())
