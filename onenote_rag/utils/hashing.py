BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_int32(value: int) -> int:
    """Wraps an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def rolling_hash(text: str, salt: int = 0) -> int:
    """
    Signed 32-bit `hash * 31 + char` rolling hash. `salt` is added to every character.
    Not cryptographic; collisions are possible.
    """
    h = 0
    for char in text:
        h = to_int32((h << 5) - h + ord(char) + salt)
    return h


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
