"""
Error types shared by the store, the managers and the HTTP layer.

Two kinds of failure exist: a store call failed (network, permission,
constraint) or a form broke one of its rules before anything was sent.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class StoreError:
    """What a failed table or storage call hands back instead of data."""

    message: str
    code: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class PortfolioError(Exception):
    pass


class FormValidationError(PortfolioError):
    """A submitted form broke its schema; carries one message per field."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__(", ".join(f"{k}: {v}" for k, v in errors.items()))


class ConfirmationRequired(PortfolioError):
    def __init__(self, action: str = "delete"):
        self.action = action
        super().__init__(f"Please confirm before you {action}.")
