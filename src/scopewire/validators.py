from __future__ import annotations

import inspect

from scopewire.exceptions import ScopeWireInvalidRegistrationError
from scopewire.tokens import is_token


class RegistrationValidator:
    """Validates registration arguments before they reach the caches."""

    def validate_constructable(self, type_: object) -> None:
        """Validate that a registered type is a class."""
        if not inspect.isclass(type_):
            msg = f"Registered type must be a class, got {type_!r}."
            raise ScopeWireInvalidRegistrationError(msg)

    def validate_slot(self, owner: object, index: int) -> None:
        """Validate the owner and index of a parameter binding."""
        self.validate_constructable(owner)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            msg = f"Parameter index must be a non-negative integer, got {index!r}."
            raise ScopeWireInvalidRegistrationError(msg)

    def validate_token(self, token: object) -> None:
        if not is_token(token):
            msg = f"Token must be a string or a Token, got {token!r}."
            raise ScopeWireInvalidRegistrationError(msg)
