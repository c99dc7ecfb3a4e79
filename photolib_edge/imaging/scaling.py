"""
Deterministic image scaling arithmetic.

These functions compute sample factors and target dimensions from pairs of
source and target sizes. They are pure and reentrant: no I/O, no state.
Proportional dimensions are rounded to the nearest integer with ties
rounded up (``floor(x + 0.5)``), computed with integer arithmetic so the
result never depends on float precision.

Example:

```python
from photolib_edge.imaging.scaling import scale_to_exact_edge
scale_to_exact_edge(200, 100, 100, 100)   # (100, 50)
```
"""

from __future__ import annotations

import math
from typing import List, Tuple

from ..errors import DomainError

# Upper bound of the power-of-two search; larger ratios cannot be
# expressed as a sample factor.
MAX_SAMPLE_RATIO = 1 << 31


def _round_div(numerator: int, denominator: int) -> int:
    # floor(numerator / denominator + 0.5) for a positive denominator
    return (2 * numerator + denominator) // (2 * denominator)


def _require_positive(**sizes: int) -> None:
    for name, value in sizes.items():
        if value <= 0:
            raise DomainError(f'{name} must be positive, got {value}')


def power_of_2_at_least(ratio: float) -> int:
    """Return the smallest power of two greater than or equal to ``ratio``.

    Ratios of 1 or less yield 1. Decoders that only subsample by powers of
    two use this to pick a coarse sample factor.

    Raises:
        DomainError: if ``ratio`` is negative, NaN or larger than 2**31.
    """
    if math.isnan(ratio) or ratio < 0 or ratio > MAX_SAMPLE_RATIO:
        raise DomainError(f'{ratio} out of range')
    result = 1
    while result < ratio:
        result <<= 1
    return result


def minimum_size_sample_factor(src_width: int, src_height: int,
                               min_width: int, min_height: int) -> int:
    """Integer sample factor keeping the result at least ``min_width x min_height``.

    The factor is ``floor(min(src_width / min_width, src_height / min_height))``
    and may be any positive integer. Sources already smaller than the minimum
    get a factor of 1.
    """
    _require_positive(src_width=src_width, src_height=src_height,
                      min_width=min_width, min_height=min_height)
    return max(1, min(src_width // min_width, src_height // min_height))


def maximum_size_sample_factor(src_width: int, src_height: int,
                               max_width: int, max_height: int) -> int:
    """Power-of-two sample factor keeping the result at most ``max_width x max_height``.

    The sampled image may be smaller than the bound but is never larger.
    """
    _require_positive(src_width=src_width, src_height=src_height,
                      max_width=max_width, max_height=max_height)
    return max(power_of_2_at_least(src_width / max_width),
               power_of_2_at_least(src_height / max_height))


def scale_to_fit(src_width: int, src_height: int, box_size: int) -> Tuple[int, int]:
    """Scale so the larger dimension equals ``box_size``.

    The smaller dimension is reduced proportionally; square sources map to
    ``(box_size, box_size)``.
    """
    _require_positive(src_width=src_width, src_height=src_height, box_size=box_size)
    if src_height < src_width:
        return box_size, max(1, _round_div(box_size * src_height, src_width))
    if src_width < src_height:
        return max(1, _round_div(box_size * src_width, src_height)), box_size
    return box_size, box_size


def scale_to_exact_edge(width: int, height: int,
                        max_width: int, max_height: int) -> Tuple[int, int]:
    """Proportionally fit ``width x height`` inside ``max_width x max_height``.

    One of the returned values equals its maximum and the other is less than
    or equal to its own.

    Args:
        width: Source width.
        height: Source height.
        max_width: Width bound.
        max_height: Height bound.

    Returns:
        ``(scaled_width, scaled_height)``.

    Raises:
        DomainError: if any argument is not positive.
    """
    _require_positive(width=width, height=height,
                      max_width=max_width, max_height=max_height)
    # One dimension already fits exactly and the other is smaller
    if width == max_width and height <= max_height:
        return width, height
    if height == max_height and width <= max_width:
        return width, height
    # width / max_width <= height / max_height, cross-multiplied
    if width * max_height <= height * max_width:
        # full height, partial width
        return max(1, _round_div(width * max_height, height)), max_height
    # full width, partial height
    return max_width, max(1, _round_div(height * max_width, width))


def equal_partitions(max_value: int, n: int) -> List[int]:
    """Partition ``[0, max_value)`` into ``n`` nearly equal integer segments.

    Returns ``n + 1`` boundaries starting at 0 and ending at ``max_value``.
    For ``max_value=100`` and ``n=3`` the result is ``[0, 33, 67, 100]``,
    i.e. the intervals ``[0, 33)``, ``[33, 67)`` and ``[67, 100)``.

    Raises:
        DomainError: if ``n`` is not positive.
    """
    if n <= 0:
        raise DomainError(f'partition count must be positive, got {n}')
    result = [0]
    for i in range(1, n):
        result.append(_round_div(i * max_value, n))
    result.append(max_value)
    return result
