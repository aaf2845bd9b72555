"""Pairwise bank/ledger match scoring."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import yaml

from recon.logger import get_logger
from recon.models import MatchType
from recon.services.description_matcher import descriptions_likely_match

logger = get_logger(__name__)

AmountLike = Decimal | int | float | str

EXACT_AMOUNT_TOLERANCE = Decimal("0.01")
FIXED_FEE_MIN = Decimal("10")
FIXED_FEE_MAX = Decimal("50")
ONE_DAY = timedelta(days=1)
CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")

NO_MATCH_REASONING = "No match found"
NO_HIGH_CONFIDENCE_REASONING = "No high-confidence match found"


@dataclass(frozen=True)
class ReconciliationConfig:
    """Confidence floors for surfacing suggestions."""

    # Single-transaction suggestions are kept at or above this score.
    suggestion_floor: float
    # Bulk proposals must score strictly above this.
    bulk_floor: float


DEFAULT_CONFIG = ReconciliationConfig(suggestion_floor=0.5, bulk_floor=0.90)

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "reconciliation.yaml"

_config_cache: ReconciliationConfig | None = None


def load_reconciliation_config(force_reload: bool = False) -> ReconciliationConfig:
    """Load reconciliation thresholds from YAML if available, then env overrides.

    Caches the result to avoid repeated disk I/O.
    """
    global _config_cache
    if _config_cache is not None and not force_reload:
        return _config_cache

    config = DEFAULT_CONFIG
    config_path = CONFIG_PATH
    if config_path.exists():
        try:
            raw = yaml.safe_load(config_path.read_text()) or {}
            thresholds = raw.get("thresholds", {})
            config = ReconciliationConfig(
                suggestion_floor=float(thresholds.get("suggestion_floor", config.suggestion_floor)),
                bulk_floor=float(thresholds.get("bulk_floor", config.bulk_floor)),
            )
        except (yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
            logger.warning(
                "Failed to load reconciliation config - using defaults",
                config_path=str(config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            config = DEFAULT_CONFIG

    suggestion_floor_env = os.getenv("RECONCILIATION_SUGGESTION_FLOOR")
    bulk_floor_env = os.getenv("RECONCILIATION_BULK_FLOOR")
    if suggestion_floor_env:
        config = replace(config, suggestion_floor=float(suggestion_floor_env))
    if bulk_floor_env:
        config = replace(config, bulk_floor=float(bulk_floor_env))

    _config_cache = config
    return config


@dataclass(frozen=True)
class MatchEvaluation:
    """Outcome of scoring one bank/ledger pair."""

    confidence: float
    match_type: MatchType
    reasoning: str


@dataclass(frozen=True)
class _PairMetrics:
    amount_diff: Decimal
    percent_diff: Decimal
    days_diff: int
    description_match: bool


def _round_half_up(value: Decimal, exponent: Decimal) -> Decimal:
    """Quantize with ties rounded away from zero."""
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def _to_decimal(value: AmountLike) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def days_between(first: date, second: date) -> int:
    """Whole days between two dates or datetimes, floored, then made absolute."""
    if isinstance(first, datetime) != isinstance(second, datetime):
        first = first.date() if isinstance(first, datetime) else first
        second = second.date() if isinstance(second, datetime) else second
    return abs((first - second) // ONE_DAY)


def _pair_metrics(
    bank_amount: AmountLike,
    bank_date: date,
    bank_description: str,
    ledger_amount: AmountLike,
    ledger_date: date,
    ledger_description: str,
) -> _PairMetrics:
    bank = _to_decimal(bank_amount)
    ledger = _to_decimal(ledger_amount)
    amount_diff = abs(bank - ledger)
    base_amount = abs(ledger)
    percent_diff = amount_diff / base_amount * 100 if base_amount > 0 else Decimal("100")
    return _PairMetrics(
        amount_diff=amount_diff,
        percent_diff=percent_diff,
        days_diff=days_between(bank_date, ledger_date),
        description_match=descriptions_likely_match(bank_description, ledger_description),
    )


def _exact_amount_rules(metrics: _PairMetrics) -> MatchEvaluation | None:
    """Rules shared by single-pair and bulk scoring: exact amount, matching vendor."""
    if metrics.amount_diff > EXACT_AMOUNT_TOLERANCE or not metrics.description_match:
        return None

    days = metrics.days_diff
    if days == 0:
        return MatchEvaluation(
            confidence=0.99,
            match_type=MatchType.EXACT,
            reasoning="Exact amount match on same date with matching vendor name",
        )
    if days <= 5:
        if days <= 2:
            confidence = 0.95
        elif days <= 3:
            confidence = 0.90
        else:
            confidence = 0.85
        plural = "" if days == 1 else "s"
        return MatchEvaluation(
            confidence=confidence,
            match_type=MatchType.TIMING,
            reasoning=f"Exact amount match with {days} day{plural} timing difference",
        )
    return None


def evaluate_match(
    bank_amount: AmountLike,
    bank_date: date,
    bank_description: str,
    ledger_amount: AmountLike,
    ledger_date: date,
    ledger_description: str,
) -> MatchEvaluation:
    """Score a bank/ledger pair against the ordered decision table.

    The first rule that applies wins, so an exact amount on the same date
    always beats fee or partial interpretations of the same pair.
    """
    metrics = _pair_metrics(
        bank_amount, bank_date, bank_description, ledger_amount, ledger_date, ledger_description
    )
    exact = _exact_amount_rules(metrics)
    if exact is not None:
        return exact

    amount_diff = metrics.amount_diff
    percent_diff = metrics.percent_diff
    days = metrics.days_diff
    described = metrics.description_match
    shown_diff = _round_half_up(amount_diff, CENTS)
    shown_percent = _round_half_up(percent_diff, TENTHS)

    if amount_diff <= EXACT_AMOUNT_TOLERANCE and days <= 3:
        return MatchEvaluation(
            confidence=0.75,
            match_type=MatchType.TIMING,
            reasoning="Exact amount match but vendor name differs - verify manually",
        )

    if 0 < percent_diff <= 5 and days <= 5 and described:
        if percent_diff <= 3:
            return MatchEvaluation(
                confidence=0.88,
                match_type=MatchType.FEE_ADJUSTED,
                reasoning=(
                    f"Amount differs by ${shown_diff} ({shown_percent}%) "
                    "- likely payment processing fee"
                ),
            )
        return MatchEvaluation(
            confidence=0.78,
            match_type=MatchType.FEE_ADJUSTED,
            reasoning=(
                f"Amount differs by ${shown_diff} ({shown_percent}%) - possible fee adjustment"
            ),
        )

    if FIXED_FEE_MIN <= amount_diff <= FIXED_FEE_MAX and days <= 5 and described:
        return MatchEvaluation(
            confidence=0.82,
            match_type=MatchType.FEE_ADJUSTED,
            reasoning=f"Amount differs by ${shown_diff} - possible bank fee",
        )

    if described and days <= 7 and percent_diff <= 20:
        return MatchEvaluation(
            confidence=0.60,
            match_type=MatchType.PARTIAL,
            reasoning=f"Matching vendor with {shown_percent}% amount difference - review carefully",
        )

    if days <= 3 and percent_diff <= 10:
        return MatchEvaluation(
            confidence=0.55,
            match_type=MatchType.PARTIAL,
            reasoning="Similar amount and date but vendor name does not match - low confidence",
        )

    return MatchEvaluation(confidence=0.0, match_type=MatchType.PARTIAL, reasoning=NO_MATCH_REASONING)


def evaluate_match_for_bulk(
    bank_amount: AmountLike,
    bank_date: date,
    bank_description: str,
    ledger_amount: AmountLike,
    ledger_date: date,
    ledger_description: str,
) -> MatchEvaluation:
    """Restricted scoring for bulk assignment: exact and timing rules only."""
    metrics = _pair_metrics(
        bank_amount, bank_date, bank_description, ledger_amount, ledger_date, ledger_description
    )
    exact = _exact_amount_rules(metrics)
    if exact is not None:
        return exact
    return MatchEvaluation(
        confidence=0.0,
        match_type=MatchType.PARTIAL,
        reasoning=NO_HIGH_CONFIDENCE_REASONING,
    )
