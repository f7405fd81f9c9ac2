"""PresentationAdapter: boundary between the engine and whatever shows errors.

The engine only ever hands FieldFeedback records to an adapter. Rendering
tooltips, writing to a console or serializing for a browser is the adapter's
business.
"""

import logging
from typing import Protocol, runtime_checkable

from fieldguard.validation.types import FieldFeedback

logger = logging.getLogger(__name__)


@runtime_checkable
class PresentationAdapter(Protocol):
    """Receives per-field feedback from a FormValidator."""

    def show(self, feedback: FieldFeedback) -> None:
        """Present feedback for one field, replacing any previous feedback."""
        ...

    def clear(self, field_id: str) -> None:
        """Remove feedback for one field."""
        ...

    def clear_all(self) -> None:
        """Remove all feedback."""
        ...


class NullPresentationAdapter:
    """Discards all feedback. Used for server-side passes."""

    def show(self, feedback: FieldFeedback) -> None:
        pass

    def clear(self, field_id: str) -> None:
        pass

    def clear_all(self) -> None:
        pass


class LoggingPresentationAdapter:
    """Writes feedback to a logger."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def show(self, feedback: FieldFeedback) -> None:
        if feedback.valid:
            self.log.info("%s: valid", feedback.field_id)
        else:
            self.log.info("%s: %s", feedback.field_id, feedback.message or "invalid")

    def clear(self, field_id: str) -> None:
        self.log.debug("%s: feedback cleared", field_id)

    def clear_all(self) -> None:
        self.log.debug("All feedback cleared")


class CollectingPresentationAdapter:
    """Keeps the currently visible feedback in memory.

    Attributes:
        visible: Field id -> feedback currently shown
        shown: Every feedback record ever shown, in order
    """

    def __init__(self) -> None:
        self.visible: dict[str, FieldFeedback] = {}
        self.shown: list[FieldFeedback] = []

    def show(self, feedback: FieldFeedback) -> None:
        self.visible[feedback.field_id] = feedback
        self.shown.append(feedback)

    def clear(self, field_id: str) -> None:
        self.visible.pop(field_id, None)

    def clear_all(self) -> None:
        self.visible.clear()

    def messages(self) -> dict[str, str | None]:
        return {field_id: feedback.message for field_id, feedback in self.visible.items()}
