from typing import Optional, Type, Callable, Generic, TypeVar


T = TypeVar("T")


class ValidationError(ValueError):
    """Raised by Var.validate() when the current value is not acceptable."""

    pass


_TRUE_STRINGS = ("true", "1", "on", "yes")
_FALSE_STRINGS = ("false", "0", "off", "no")


class Var(Generic[T]):
    """
    Represents a single typed variable with metadata for UI generation,
    validation, and data handling.
    """

    def __init__(
        self,
        key: str,
        label: str,
        var_type: Type[T],
        description: Optional[str] = None,
        default: Optional[T] = None,
        value: Optional[T] = None,
        validator: Optional[Callable[[Optional[T]], None]] = None,
    ):
        """
        Initializes a new Var instance.

        Args:
            key: The unique machine-readable identifier for the variable.
            label: The human-readable name for the variable (e.g., for UI).
            var_type: The expected Python type of the variable's value.
            description: A longer, human-readable description.
            default: The default value.
            value: The initial value. If provided, it overrides the default.
            validator: An optional callable that raises ValidationError if
                       the value is invalid. It is only run by validate().
        """
        self.key = key
        self.label = label
        self.var_type = var_type
        self.description = description
        self.default = default
        self.validator = validator
        self._value: Optional[T] = None

        # Set initial value, preferring explicit `value` over `default`.
        self.value = value if value is not None else default

    @property
    def value(self) -> Optional[T]:
        """The current value of the variable."""
        return self._value

    @value.setter
    def value(self, new_value: Optional[T]):
        if new_value is None:
            self._value = None
            return
        self._value = self._coerce(new_value)

    def _coerce(self, new_value) -> T:
        if self.var_type is bool:
            if isinstance(new_value, str):
                lowered = new_value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True  # type: ignore[return-value]
                if lowered in _FALSE_STRINGS:
                    return False  # type: ignore[return-value]
                raise TypeError(
                    f"Value '{new_value}' for key '{self.key}' cannot be "
                    f"coerced to type bool"
                )
            if isinstance(new_value, (int, float)):
                return bool(new_value)  # type: ignore[return-value]

        try:
            if self.var_type is int and isinstance(new_value, str):
                # "123.9" is accepted and truncated, like int(float(...))
                return int(float(new_value))  # type: ignore[return-value]
            return self.var_type(new_value)  # type: ignore[call-arg]
        except (ValueError, TypeError) as e:
            raise TypeError(
                f"Value '{new_value}' for key '{self.key}' cannot be coerced "
                f"to type {self.var_type.__name__}"
            ) from e

    def validate(self) -> None:
        """
        Runs the validator against the current value. Assigning a value
        never validates; callers decide when to check.
        """
        if self.validator:
            self.validator(self._value)

    def __repr__(self) -> str:
        return (
            f"Var(key='{self.key}', value={self.value}, "
            f"type={self.var_type.__name__})"
        )
