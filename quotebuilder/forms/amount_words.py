"""
amount_words.py — Spell out a grand total for the "In word:" line

    amount_to_words(1500)     → "One Thousand Five Hundred Dollars"
    amount_to_words(12.05)    → "Twelve Dollars and Five Cents"
    amount_to_words(0)        → "Zero"

Zero is returned bare, without the " Dollars" suffix every other amount
carries. Callers that print a currency phrase for zero must add it.
"""

ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
TEENS = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen",
         "Sixteen", "Seventeen", "Eighteen", "Nineteen"]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
SCALES = ["", "Thousand", "Million", "Billion"]

MAX_AMOUNT = 1000 ** len(SCALES)


def _hundreds_to_words(n: int) -> str:
    """0–999 → words. Empty string for 0."""
    words = []
    if n >= 100:
        words.append(f"{ONES[n // 100]} Hundred")
        n %= 100
    if 10 <= n <= 19:
        words.append(TEENS[n - 10])
    elif n > 0:
        if n >= 20:
            words.append(TENS[n // 10])
        if n % 10:
            words.append(ONES[n % 10])
    return " ".join(words)


def integer_to_words(n: int) -> str:
    """Base-1000 groups, most significant first; zero groups are skipped."""
    if n == 0:
        return "Zero"
    groups = []
    scale = 0
    while n > 0:
        group = n % 1000
        if group:
            words = _hundreds_to_words(group)
            if SCALES[scale]:
                words = f"{words} {SCALES[scale]}"
            groups.append(words)
        n //= 1000
        scale += 1
    return " ".join(reversed(groups))


def amount_to_words(amount) -> str:
    """Non-negative amount → '<words> Dollars[ and <words> Cents]'."""
    amount = float(amount or 0)
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if amount >= MAX_AMOUNT:
        raise ValueError(f"amount too large to spell: {amount}")
    if amount == 0:
        return "Zero"

    whole = int(amount)
    cents = int(round((amount - whole) * 100))
    if cents == 100:
        whole, cents = whole + 1, 0

    result = f"{integer_to_words(whole)} Dollars"
    if cents:
        result += f" and {_hundreds_to_words(cents)} Cents"
    return result


def format_money(value, decimals: int = 2) -> str:
    """1234.5 → '$1,234.50'"""
    return f"${float(value or 0):,.{decimals}f}"
