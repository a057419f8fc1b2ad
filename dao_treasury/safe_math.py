"""
Saturating integer helpers for balances, heights and counters
"""

U8_MAX = (1 << 8) - 1
U32_MAX = (1 << 32) - 1
U128_MAX = (1 << 128) - 1

# Balance is u128, block heights and proposal ids are u32
BALANCE_MAX = U128_MAX
BLOCK_MAX = U32_MAX


def require_range(value: int, maximum: int, name: str = "value") -> int:
    """Reject values outside [0, maximum]"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > maximum:
        raise ValueError(f"{name} {value} out of range 0..{maximum}")
    return value


def saturating_add(x: int, y: int, maximum: int = BALANCE_MAX) -> int:
    """min(x + y, maximum)"""
    return min(x + y, maximum)


def add_balance(x: int, y: int) -> int:
    return saturating_add(x, y, BALANCE_MAX)


def add_blocks(height: int, blocks: int) -> int:
    return saturating_add(height, blocks, BLOCK_MAX)
