"""Domain errors."""


class IncompleteProfileError(ValueError):
    """Raised when a profile lacks fields required for a calculation."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(
            "Profile is incomplete, missing: " + ", ".join(missing_fields)
        )


class InvalidDomainValueError(ValueError):
    """Raised when a profile field is present but outside its valid range."""

    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r}")


class AuthenticationError(Exception):
    """Raised when the identity provider rejects a request."""
