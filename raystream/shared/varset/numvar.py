from typing import Optional, Callable, Union
from .var import Var, ValidationError


Number = Union[int, float]


def _range_validator(
    min_val: Optional[Number],
    max_val: Optional[Number],
    extra: Optional[Callable] = None,
) -> Callable:
    def validate(value):
        if value is not None:
            if min_val is not None and value < min_val:
                raise ValidationError(f"Value must be at least {min_val}")
            if max_val is not None and value > max_val:
                raise ValidationError(f"Value must be at most {max_val}")
        if extra:
            extra(value)

    return validate


class IntVar(Var[int]):
    """An integer Var with optional inclusive bounds."""

    def __init__(
        self,
        key: str,
        label: str,
        description: Optional[str] = None,
        default: Optional[int] = None,
        value: Optional[int] = None,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
        validator: Optional[Callable] = None,
    ):
        self.min_val = min_val
        self.max_val = max_val
        super().__init__(
            key,
            label,
            int,
            description=description,
            default=default,
            value=value,
            validator=_range_validator(min_val, max_val, validator),
        )


class FloatVar(Var[float]):
    """A float Var with optional inclusive bounds."""

    def __init__(
        self,
        key: str,
        label: str,
        description: Optional[str] = None,
        default: Optional[float] = None,
        value: Optional[float] = None,
        min_val: Optional[float] = None,
        max_val: Optional[float] = None,
        extra_validator: Optional[Callable] = None,
    ):
        self.min_val = min_val
        self.max_val = max_val
        super().__init__(
            key,
            label,
            float,
            description=description,
            default=default,
            value=value,
            validator=_range_validator(min_val, max_val, extra_validator),
        )
