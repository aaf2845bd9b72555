"""Heuristic counterparty matching for free-text transaction descriptions."""

from __future__ import annotations

# Ledger descriptions are conventionally "Vendor Name - memo".
VENDOR_SEPARATOR = " - "

MIN_SIGNIFICANT_LENGTH = 4

# Ledger vendor name -> substrings that identify the same vendor on a bank feed.
VENDOR_ALIASES: dict[str, tuple[str, ...]] = {
    "amazon web services": ("aws", "amazon"),
    "google cloud platform": ("google", "gcp"),
    "slack technologies": ("slack",),
    "zoom video communications": ("zoom",),
    "adobe systems": ("adobe",),
    "microsoft": ("msft", "microsoft"),
    "salesforce": ("sfdc", "salesforce"),
    "hubspot": ("hubspot",),
    "mailchimp": ("mailchimp", "intuit"),
    "office depot": ("office depot", "od"),
    "staples": ("staples",),
    "fedex": ("fedex", "fed ex"),
    "ups": ("ups", "united parcel"),
    "comcast business": ("comcast",),
    "pg&e": ("pge", "pg&e", "pacific gas"),
    "wework": ("wework",),
    "regus": ("regus",),
    "delta airlines": ("delta",),
    "united airlines": ("united",),
    "marriott hotels": ("marriott",),
    "uber": ("uber",),
    "lyft": ("lyft",),
    "blue cross blue shield": ("bcbs", "blue cross", "anthem"),
    "hartford insurance": ("hartford",),
    "gusto": ("gusto",),
    "stripe": ("stripe",),
}


def extract_vendor_name(ledger_text: str) -> str:
    """Return the lower-cased vendor portion of a ledger description."""
    return ledger_text.lower().split(VENDOR_SEPARATOR, 1)[0].strip()


def _significant_tokens(text: str) -> list[str]:
    return [token for token in text.split() if len(token) >= MIN_SIGNIFICANT_LENGTH]


def _tokens_overlap(vendor_name: str, bank_lower: str) -> bool:
    bank_tokens = _significant_tokens(bank_lower)
    for vendor_token in _significant_tokens(vendor_name):
        for bank_token in bank_tokens:
            if vendor_token == bank_token or bank_token in vendor_token or vendor_token in bank_token:
                return True
    return False


def descriptions_likely_match(bank_text: str, ledger_text: str) -> bool:
    """Decide whether two descriptions plausibly name the same counterparty.

    Checks run cheapest and most precise first and stop at the first hit:
    direct containment, the ledger vendor name, its first word, the alias
    table, then a token overlap fallback.
    """
    bank_lower = (bank_text or "").lower()
    ledger_lower = (ledger_text or "").lower()

    if ledger_lower in bank_lower or bank_lower in ledger_lower:
        return True

    vendor_name = extract_vendor_name(ledger_lower)
    if len(vendor_name) >= MIN_SIGNIFICANT_LENGTH and vendor_name in bank_lower:
        return True

    vendor_words = vendor_name.split()
    if vendor_words:
        first_word = vendor_words[0]
        if len(first_word) >= MIN_SIGNIFICANT_LENGTH and first_word in bank_lower:
            return True

    aliases = VENDOR_ALIASES.get(vendor_name, ())
    if any(alias in bank_lower for alias in aliases):
        return True

    return _tokens_overlap(vendor_name, bank_lower)
