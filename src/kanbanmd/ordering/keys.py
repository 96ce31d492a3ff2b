"""Fractional order keys.

A key is an integer part followed by an optional fraction, both written in
base-62 digits (``0-9A-Za-z``). The head character of the integer part
encodes its length: ``a``-``z`` are non-negative integers of 2-27 chars,
``A``-``Z`` are negative integers of 27-2 chars. Plain string comparison of
two valid keys matches their intended order, so a key can always be found
strictly between two others without touching any sibling.
"""

from __future__ import annotations

import re

from kanbanmd.exceptions import OrderKeyError

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
INITIAL_KEY = "a0"

_SMALLEST_INTEGER = "A" + DIGITS[0] * 26
_LEGACY_ORDER_RE = re.compile(r"-?[0-9]+")


def is_legacy_order(value: str) -> bool:
    """Return True for bare-integer order values written by older versions."""
    return bool(_LEGACY_ORDER_RE.fullmatch(value))


def _midpoint(a: str, b: str | None) -> str:
    """Fraction string strictly between fractions ``a`` and ``b``.

    ``b`` of None means "no upper bound". Neither argument may carry trailing
    zeros.
    """
    if b is not None and a >= b:
        raise OrderKeyError(f"{a!r} >= {b!r}")
    if a.endswith(DIGITS[0]) or (b is not None and b.endswith(DIGITS[0])):
        raise OrderKeyError("fraction has a trailing zero")

    if b is not None:
        # Skip the common prefix
        n = 0
        while n < len(b) and (a[n] if n < len(a) else DIGITS[0]) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])

    digit_a = DIGITS.index(a[0]) if a else 0
    digit_b = DIGITS.index(b[0]) if b is not None else len(DIGITS)
    if digit_b - digit_a > 1:
        return DIGITS[(digit_a + digit_b + 1) // 2]

    # Adjacent digits
    if b is not None and len(b) > 1:
        return b[0]
    return DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise OrderKeyError(f"invalid order key head: {head!r}")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        raise OrderKeyError(f"invalid order key: {key!r}")
    return key[:length]


def validate_key(key: str) -> None:
    """Raise OrderKeyError unless ``key`` is a well-formed order key."""
    if not key:
        raise OrderKeyError("order key is empty")
    if key == _SMALLEST_INTEGER:
        raise OrderKeyError(f"invalid order key: {key!r}")
    if any(ch not in DIGITS for ch in key):
        raise OrderKeyError(f"invalid order key: {key!r}")
    integer = _integer_part(key)
    fraction = key[len(integer) :]
    if fraction.endswith(DIGITS[0]):
        raise OrderKeyError(f"invalid order key: {key!r}")


def _increment_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    carry = True
    for i in range(len(digits) - 1, -1, -1):
        d = DIGITS.index(digits[i]) + 1
        if d == len(DIGITS):
            digits[i] = DIGITS[0]
        else:
            digits[i] = DIGITS[d]
            carry = False
            break
    if carry:
        if head == "Z":
            return "a" + DIGITS[0]
        if head == "z":
            return None
        h = chr(ord(head) + 1)
        if h > "a":
            digits.append(DIGITS[0])
        else:
            digits.pop()
        return h + "".join(digits)
    return head + "".join(digits)


def _decrement_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    borrow = True
    for i in range(len(digits) - 1, -1, -1):
        d = DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = DIGITS[-1]
        else:
            digits[i] = DIGITS[d]
            borrow = False
            break
    if borrow:
        if head == "a":
            return "Z" + DIGITS[-1]
        if head == "A":
            return None
        h = chr(ord(head) - 1)
        if h < "Z":
            digits.append(DIGITS[-1])
        else:
            digits.pop()
        return h + "".join(digits)
    return head + "".join(digits)


def key_between(before: str | None, after: str | None) -> str:
    """Generate a key that sorts strictly between two keys.

    Args:
        before: Lower bound, or None for the start of the sequence.
        after: Upper bound, or None for the end of the sequence.

    Returns:
        A new order key.

    Raises:
        OrderKeyError: If a key is malformed or ``before >= after``.
    """
    if before is not None:
        validate_key(before)
    if after is not None:
        validate_key(after)
    if before is not None and after is not None and before >= after:
        raise OrderKeyError(f"{before!r} >= {after!r}")

    if before is None:
        if after is None:
            return INITIAL_KEY
        integer = _integer_part(after)
        fraction = after[len(integer) :]
        if integer == _SMALLEST_INTEGER:
            return integer + _midpoint("", fraction)
        if integer < after:
            return integer
        result = _decrement_integer(integer)
        if result is None:
            raise OrderKeyError("cannot decrement any more")
        return result

    if after is None:
        integer = _integer_part(before)
        fraction = before[len(integer) :]
        result = _increment_integer(integer)
        return integer + _midpoint(fraction, None) if result is None else result

    integer_a = _integer_part(before)
    fraction_a = before[len(integer_a) :]
    integer_b = _integer_part(after)
    fraction_b = after[len(integer_b) :]
    if integer_a == integer_b:
        return integer_a + _midpoint(fraction_a, fraction_b)
    result = _increment_integer(integer_a)
    if result is None:
        raise OrderKeyError("cannot increment any more")
    if result < after:
        return result
    return integer_a + _midpoint(fraction_a, None)


def keys_between(before: str | None, after: str | None, n: int) -> list[str]:
    """Generate ``n`` ascending keys strictly between two keys.

    Used to re-key a whole column at once; keys are spread evenly rather
    than crowded against one bound.
    """
    if n <= 0:
        return []
    if n == 1:
        return [key_between(before, after)]
    if after is None:
        keys = [key_between(before, None)]
        for _ in range(n - 1):
            keys.append(key_between(keys[-1], None))
        return keys
    if before is None:
        keys = [key_between(None, after)]
        for _ in range(n - 1):
            keys.append(key_between(None, keys[-1]))
        return list(reversed(keys))

    mid = n // 2
    middle = key_between(before, after)
    return [*keys_between(before, middle, mid), middle, *keys_between(middle, after, n - mid - 1)]
