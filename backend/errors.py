"""
errors.py — Garden error taxonomy
Validation and not-found errors abort an operation before anything is mutated.
Persistence and attestation errors are best-effort and never roll back local state.
"""


class TendlyError(Exception):
    """Base class for all garden domain errors."""


class ValidationError(TendlyError):
    """Missing/blank required field or an invalid enum value."""


class NotFoundError(TendlyError):
    """A task, plant, session, post or comment id that doesn't exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class PersistenceError(TendlyError):
    """Underlying storage read/write failed or stored data is unreadable."""


class AttestationError(TendlyError):
    """Optional proof/ledger submission failed."""
