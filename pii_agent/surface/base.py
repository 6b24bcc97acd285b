"""Capability contracts for the chat interface the workflow drives.

Locating input fields, send buttons, or response containers on a specific
site is the adapter's job; the workflow only talks to these interfaces.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

ChangeCallback = Callable[[], None]
Unsubscribe = Callable[[], None]


@dataclass
class TextSegment:
    """A mutable run of rendered text, e.g. one text node of a response."""

    text: str
    in_response: bool = True


class RenderedView(ABC):
    """Rendered, possibly fragmented, text the revert engine rewrites in place."""

    @abstractmethod
    def response_segments(self) -> list[TextSegment]:
        """Segments inside known response containers."""

    @abstractmethod
    def document_segments(self) -> list[TextSegment]:
        """Every segment on the surface, ignoring container boundaries."""

    def document_text(self) -> str:
        return "".join(segment.text for segment in self.document_segments())


class ChatSurface(ABC):
    """The editable prompt and send affordance of a chat interface."""

    def supports_automation(self) -> bool:
        """Whether the workflow may drive this surface."""
        return True

    @abstractmethod
    def get_editable_text(self) -> str: ...

    @abstractmethod
    def set_editable_text(self, text: str) -> None: ...

    @abstractmethod
    def submit(self) -> bool:
        """Actuate the send affordance; True if one was found and triggered."""


class ResponseObserver(ABC):
    """Push-style view of the responses rendered by the chat interface."""

    @abstractmethod
    def subscribe(self, on_change: ChangeCallback) -> Unsubscribe:
        """Call *on_change* whenever rendered content changes.

        The callback may be invoked from any thread.
        """

    @abstractmethod
    def count_responses(self) -> int: ...

    @abstractmethod
    def get_latest_response_text(self) -> str: ...

    def rendered_view(self) -> RenderedView:
        """View the revert engine rewrites; defaults to the latest response text."""
        from pii_agent.surface.text_view import TextView

        return TextView.from_text(self.get_latest_response_text())
