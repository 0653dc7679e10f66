from __future__ import annotations


class PrintError(RuntimeError):
    """Base class for failures surfaced to the user as a single message."""

    user_message = 'Error generating PDF. Please try again.'

    def __init__(self, detail: str | None = None, *, user_message: str | None = None):
        super().__init__(detail or user_message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class EmptySelectionError(PrintError):
    user_message = 'Please select at least one flashcard to print.'


class PreviewMissingError(PrintError):
    user_message = 'Please generate a preview first.'


class FontsNotReadyError(PrintError):
    user_message = 'Loading Chinese font… try Preview again in a moment.'


class LayoutError(PrintError):
    pass
