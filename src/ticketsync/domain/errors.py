"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only handle ValueError.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested product, ticket or mapping does not exist."""


class ConfigurationError(DomainError):
    """A collaborator is missing the credentials or settings it needs."""


class RemoteAPIError(DomainError):
    """A remote service answered with an error or could not be reached.

    Attributes:
        service: Name of the remote service (e.g. "eventbrite", "square")
        status_code: HTTP status code when one was received
        remote_message: Error text reported by the remote service
    """

    def __init__(
        self,
        service: str,
        remote_message: str,
        status_code: Optional[int] = None,
    ):
        self.service = service
        self.remote_message = remote_message
        self.status_code = status_code
        prefix = f"{service} API error"
        if status_code is not None:
            prefix = f"{prefix} ({status_code})"
        super().__init__(f"{prefix}: {remote_message}")


def product_not_found(product_id: int) -> str:
    """Return message for a product missing from the catalog."""
    return f"Product {product_id} not found"


def ticket_not_found(ticket_id: str) -> str:
    """Return message for a ticket class missing from the ticketing service."""
    return f"Ticket class '{ticket_id}' not found"


def invalid_quantity(quantity) -> str:
    """Return message for a non-positive or non-integer quantity."""
    return f"Quantity must be a positive integer, got {quantity!r}"


def invalid_date_range(start, end) -> str:
    """Return message when a start date falls after the end date."""
    return f"Start date {start} is after end date {end}"


def unknown_channel(channel: str) -> str:
    """Return message for an unrecognised sales channel."""
    return f"Unknown sales channel '{channel}'"
