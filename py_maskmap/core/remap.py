"""
Linear rescaling of mask samples into a layer's value domain.

Two modes are supported: from the actual range observed in the mask
(low..high) and from the full declared range of the mask's data type
(0..max). Results truncate toward zero, like the integer arithmetic the
layer value domains are defined in.
"""


class InvalidRangeError(ValueError):
    """Raised when a mask range is degenerate and cannot be divided by."""


def _div_trunc(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def validate_actual_range(mask_low_value: int, mask_high_value: int) -> None:
    """Raise InvalidRangeError unless high > low."""
    if mask_high_value <= mask_low_value:
        raise InvalidRangeError(
            f"Actual mask range is empty: low={mask_low_value}, high={mask_high_value}"
        )


def validate_full_range(mask_max_value: int) -> None:
    """Raise InvalidRangeError unless the declared maximum is positive."""
    if mask_max_value <= 0:
        raise InvalidRangeError(f"Full mask range is empty: max={mask_max_value}")


def remap_actual_range(value: int, mask_low_value: int, mask_high_value: int, max_value: int) -> int:
    """
    Map value from [mask_low_value, mask_high_value] onto [0, max_value].

    Values outside the mask range extrapolate linearly.

    Raises:
        InvalidRangeError: If mask_high_value <= mask_low_value
    """
    validate_actual_range(mask_low_value, mask_high_value)
    return _div_trunc((value - mask_low_value) * max_value, mask_high_value - mask_low_value)


def remap_full_range(value: int, mask_max_value: int, max_value: int) -> int:
    """
    Map value from [0, mask_max_value] onto [0, max_value].

    Raises:
        InvalidRangeError: If mask_max_value <= 0
    """
    validate_full_range(mask_max_value)
    return _div_trunc(value * max_value, mask_max_value)
