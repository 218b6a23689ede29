"""Custom exceptions for form parsing and filling."""

from __future__ import annotations


class FormFillError(Exception):
    """Base class for form-level failures that end a fill run."""


class InvalidUrlError(FormFillError):
    """Raised when a form id cannot be extracted from the form URL."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class FetchError(FormFillError):
    """Raised when the target form document cannot be retrieved."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NoQuestionsError(FormFillError):
    """Raised when a form was fetched but no answerable fields were found."""

    def __init__(self, message: str, *, form_id: str) -> None:
        super().__init__(message)
        self.form_id = form_id
