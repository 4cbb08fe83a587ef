from config.settings import CURRENCY_SYMBOL


def _group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def fmt_amount(value: float, decimals: int = 0) -> str:
    """Format currency with Indian digit grouping: 1234567.8 -> ₹12,34,568"""
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{decimals}f}"
    whole, _, frac = text.partition(".")
    out = f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}"
    return f"{out}.{frac}" if frac else out


def fmt_rate(value: float) -> str:
    """8.5 -> 8.50%"""
    return f"{value:.2f}%"


def fmt_percent(value: float) -> str:
    """0.3456 -> 34.56%"""
    return f"{value * 100:.2f}%"


def fmt_months(months: int) -> str:
    """Format a month count: 30 -> 2y 6m"""
    years = months // 12
    remain = months % 12
    if remain == 0:
        return f"{years}y"
    if years == 0:
        return f"{remain}m"
    return f"{years}y {remain}m"
