"""Amount resolution shared by every quote/execute protocol.

A request pins exactly one side of the trade:
- ExactIn: the amount paid in is fixed, the amount out is computed
- ExactOut: the amount received is fixed, the amount in is computed

Amounts are integers in base units (wei, cents, ...). Floats and Decimals
are accepted only when they hold an exact, finite, non-negative integer.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated, Any, Optional, TypeVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictInt, ValidationError
from pydantic.alias_generators import to_camel

from walletkit.errors import InvalidAmountSpecificationError, InvalidArgumentError


def _reject_text(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        raise ValueError("amounts must be numbers, not strings")
    return value


# Range and integrality are checked by resolve_amount(), not by pydantic, so
# bad numbers surface as InvalidAmountSpecificationError.
BaseUnitAmount = Union[
    StrictInt,
    Annotated[Decimal, Field(allow_inf_nan=True), BeforeValidator(_reject_text)],
]


class OptionsModel(BaseModel):
    """Base for request options: frozen, snake_case with camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ResultModel(BaseModel):
    """Base for quotes and results."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


@dataclass(frozen=True)
class ExactIn:
    """The input side is pinned."""

    amount: int
    field: str

    @property
    def is_exact_in(self) -> bool:
        return True


@dataclass(frozen=True)
class ExactOut:
    """The output side is pinned."""

    amount: int
    field: str

    @property
    def is_exact_in(self) -> bool:
        return False


AmountSpec = Union[ExactIn, ExactOut]

M = TypeVar("M", bound=BaseModel)


def to_base_units(name: str, value: Any) -> int:
    """Convert a present amount to a non-negative int.

    Raises:
        InvalidAmountSpecificationError: If the value is not a finite,
            non-negative whole number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidAmountSpecificationError(
            f"'{name}' must be an integer amount in base units, got {type(value).__name__}"
        )

    if isinstance(value, int):
        amount = value
    else:
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidAmountSpecificationError(f"'{name}' must be finite, got {value}")
        if isinstance(value, Decimal) and not value.is_finite():
            raise InvalidAmountSpecificationError(f"'{name}' must be finite, got {value}")
        if value != int(value):
            raise InvalidAmountSpecificationError(
                f"'{name}' must be a whole number of base units, got {value}"
            )
        amount = int(value)

    if amount < 0:
        raise InvalidAmountSpecificationError(f"'{name}' must be non-negative, got {amount}")

    return amount


def require_base_units(name: str, value: Any) -> int:
    """Validate a single mandatory amount (e.g. a transfer)."""
    if value is None:
        raise InvalidAmountSpecificationError(f"'{name}' is required")
    return to_base_units(name, value)


def resolve_amount(
    exact_in: tuple[str, Optional[Any]],
    exact_out: tuple[str, Optional[Any]],
) -> AmountSpec:
    """Pick the pinned side of a request.

    Args:
        exact_in: (field name, value) of the input-side amount
        exact_out: (field name, value) of the output-side amount

    Returns:
        ExactIn or ExactOut carrying the validated amount

    Raises:
        InvalidAmountSpecificationError: If both or neither are present, or
            the present amount is invalid
    """
    in_name, in_value = exact_in
    out_name, out_value = exact_out

    if in_value is not None and out_value is not None:
        raise InvalidAmountSpecificationError(
            f"Specify either '{in_name}' or '{out_name}', not both"
        )
    if in_value is None and out_value is None:
        raise InvalidAmountSpecificationError(
            f"One of '{in_name}' or '{out_name}' is required"
        )

    if in_value is not None:
        return ExactIn(amount=to_base_units(in_name, in_value), field=in_name)
    return ExactOut(amount=to_base_units(out_name, out_value), field=out_name)


def parse_options(model: type[M], options: Union[M, dict, None]) -> M:
    """Coerce a dict (snake_case or camelCase keys) into an options model.

    Raises:
        InvalidArgumentError: If the options are missing or malformed
    """
    if isinstance(options, model):
        return options
    if not isinstance(options, dict):
        raise InvalidArgumentError(
            f"Expected {model.__name__} or dict, got {type(options).__name__}"
        )

    try:
        return model.model_validate(options)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid {model.__name__}: {e}") from e
