"""Filter raw OCR lines down to lines that plausibly describe purchased items."""

import logging
import re
from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

# Header/footer/tax/total/payment vocabulary.
METADATA_KEYWORDS = frozenset(
    {
        # Venue headers
        "HOTEL", "MOTEL", "RESTAURANT", "CAFE", "BAR", "STORE", "RECEIPT",
        # Totals and tax
        "SUBTOTAL", "SUB-TOTAL", "SUB", "TOTAL", "TAX", "TAXES", "VAT", "GST", "HST", "PST",
        "AMOUNT", "BALANCE", "CHANGE", "DUE", "PAID", "TIP", "GRATUITY",
        # Payment
        "CASH", "CREDIT", "CARD", "MASTERCARD", "VISA", "AMEX",
        "AUTH", "SIGNATURE", "PIN", "VERIFIED", "APPROVED", "TRANSACTION",
        # Order metadata
        "INVOICE", "ORDER", "TABLE", "GUEST", "SERVER", "CLERK",
        "DATE", "TIME", "PHONE", "WEBSITE", "ADDRESS",
        "ITEM", "DESCRIPTION", "QTY", "PRICE",
        "DISCOUNT", "SAVINGS", "COUPON",
        # Footer courtesy lines
        "THANK", "THANKS", "YOU", "WELCOME", "AGAIN", "VISIT", "COME",
    }
)

CURRENCY_MARKERS = ("$", "€", "£")

# Lines shorter than this that mention a keyword are metadata.
MIN_LINE_LENGTH = 5
# Lines shorter than this without a price shape or currency marker are noise.
MIN_UNPRICED_LINE_LENGTH = 8

TRAILING_PRICE = re.compile(r"\d+\.\d{2}$")
LEADING_QUANTITY = re.compile(r"^\d+")
# Price tokens such as "$15.00" or "0.50" carry no metadata meaning on their own.
# A bare integer is not neutral: in "1 Cafe 3.50" it is the item quantity.
AMOUNT_TOKEN = re.compile(r"^[$€£]?\d+\.\d{2}$")


def _is_metadata_line(upper_line: str, keywords: frozenset[str]) -> bool:
    """Return True if the line is made of metadata vocabulary (plus prices)."""
    if not any(keyword in upper_line for keyword in keywords):
        return False
    if len(upper_line) < MIN_LINE_LENGTH:
        return True
    word_tokens = [token for token in upper_line.split() if not AMOUNT_TOKEN.match(token)]
    return bool(word_tokens) and all(token in keywords for token in word_tokens)


def classify(lines: Sequence[str], keywords: Iterable[str] | None = None) -> list[str]:
    """
    Return the lines that look like purchased items, in their original order.

    Metadata lines (headers, totals, tax, payment and footer text) and short
    noise are dropped. A price-looking suffix or quantity-looking prefix keeps a
    line even if it mentions a keyword, unless the line is nothing but keywords
    and prices. Everything else is kept; the extractor rejects what it
    cannot match.

    Args:
        lines: Raw text lines, one per recognized text region
        keywords: Extra metadata keywords added to METADATA_KEYWORDS

    Returns:
        Candidate item lines (stripped of surrounding whitespace)
    """
    vocabulary = METADATA_KEYWORDS
    if keywords:
        vocabulary = vocabulary | frozenset(keyword.upper() for keyword in keywords)

    candidates: list[str] = []
    for raw_line in lines:
        line = raw_line.strip()
        upper_line = line.upper()

        if _is_metadata_line(upper_line, vocabulary):
            logger.debug("Filtering out metadata line: %r", line)
            continue

        if TRAILING_PRICE.search(line) or LEADING_QUANTITY.match(line):
            candidates.append(line)
            continue

        if len(line) < MIN_UNPRICED_LINE_LENGTH and not any(marker in line for marker in CURRENCY_MARKERS):
            logger.debug("Filtering out short/non-item line: %r", line)
            continue

        candidates.append(line)

    return candidates
