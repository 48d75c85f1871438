from typing import Union


class InvalidCount(ValueError):
    """红包个数无效"""


def parse_count(value: Union[str, int]) -> int:
    """Parse a positive integer packet count.

    Raises:
        InvalidCount: not an integer, or less than 1
    """
    if isinstance(value, bool):
        raise InvalidCount(f"个数无效: {value!r}")
    if isinstance(value, int):
        count = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise InvalidCount(f"个数无效: {value!r}")
        count = int(text)

    if count < 1:
        raise InvalidCount(f"个数至少为 1: {value!r}")
    return count


def format_duration(seconds: int) -> str:
    """Format duration in a human-readable Chinese format."""
    if seconds < 60:
        return f" {seconds} 秒"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        if secs == 0:
            return f" {minutes} 分钟"
        return f" {minutes} 分 {secs} 秒"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        if minutes == 0:
            return f" {hours} 小时"
        return f" {hours} 小时 {minutes} 分钟"
