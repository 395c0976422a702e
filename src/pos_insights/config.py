from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional
import json
import os
import sys

from pos_insights.domain.errors import ConfigError


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    config_path: Path
    logs_dir: Path


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "PosInsights") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    cfg = base / "insights.json"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, config_path=cfg, logs_dir=logs)


@dataclass(frozen=True)
class TaxBracket:
    """Marginal rate applied to income up to ``up_to`` (``None`` = no cap)."""

    up_to: Optional[float]
    rate: float


@dataclass(frozen=True)
class CategoryRule:
    keyword: str
    category: str


@dataclass(frozen=True)
class TierThreshold:
    spend: float
    points: int


@dataclass(frozen=True)
class SegmentThresholds:
    gold: TierThreshold = TierThreshold(spend=1000.0, points=500)
    silver: TierThreshold = TierThreshold(spend=500.0, points=200)


@dataclass(frozen=True)
class DiscountTier:
    below: int
    percent: int


DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(up_to=250_000.0, rate=0.08),
    TaxBracket(up_to=500_000.0, rate=0.20),
    TaxBracket(up_to=None, rate=0.30),
)

DEFAULT_CATEGORY_KEYWORDS: tuple[CategoryRule, ...] = (
    CategoryRule("inventory", "Inventory"),
    CategoryRule("stock", "Inventory"),
    CategoryRule("rent", "Facility"),
    CategoryRule("lease", "Facility"),
    CategoryRule("salary", "Payroll"),
    CategoryRule("payroll", "Payroll"),
    CategoryRule("utility", "Utilities"),
    CategoryRule("electric", "Utilities"),
    CategoryRule("water", "Utilities"),
    CategoryRule("marketing", "Marketing"),
    CategoryRule("advertising", "Marketing"),
)

DEFAULT_DISCOUNT_TIERS: tuple[DiscountTier, ...] = (
    DiscountTier(below=2, percent=20),
    DiscountTier(below=5, percent=10),
)


@dataclass(frozen=True)
class InsightsConfig:
    low_stock_threshold: int = 10
    segment_thresholds: SegmentThresholds = SegmentThresholds()
    vat_rate: float = 0.18
    tax_brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS
    category_keywords: tuple[CategoryRule, ...] = DEFAULT_CATEGORY_KEYWORDS
    default_category: str = "Other"
    loyalty_rate: float = 0.01
    reorder_target_stock: int = 20
    reorder_cover_days: int = 14
    reorder_lookback_days: int = 30
    min_reorder_quantity: int = 10
    discount_tiers: tuple[DiscountTier, ...] = DEFAULT_DISCOUNT_TIERS
    top_products_limit: int = 5

    def __post_init__(self) -> None:
        if self.vat_rate < 0:
            raise ConfigError("VAT rate must be >= 0.")
        if self.loyalty_rate < 0:
            raise ConfigError("Loyalty rate must be >= 0.")
        if self.reorder_lookback_days <= 0:
            raise ConfigError("Reorder lookback days must be > 0.")
        if self.top_products_limit < 0:
            raise ConfigError("Top products limit must be >= 0.")
        _check_brackets(self.tax_brackets)
        _check_discount_tiers(self.discount_tiers)
        gold, silver = self.segment_thresholds.gold, self.segment_thresholds.silver
        if gold.spend < silver.spend or gold.points < silver.points:
            raise ConfigError("Gold thresholds must not be below Silver thresholds.")


def _check_brackets(brackets: tuple[TaxBracket, ...]) -> None:
    if not brackets:
        raise ConfigError("At least one tax bracket is required.")
    previous = 0.0
    for i, b in enumerate(brackets):
        if not 0 <= b.rate <= 1:
            raise ConfigError(f"Tax rate must be between 0 and 1. Received: {b.rate}")
        if b.up_to is None:
            if i != len(brackets) - 1:
                raise ConfigError("Only the last tax bracket may be open-ended.")
            continue
        if i == len(brackets) - 1:
            raise ConfigError("The last tax bracket must be open-ended.")
        if b.up_to <= previous:
            raise ConfigError("Tax bracket boundaries must be ascending.")
        previous = b.up_to


def _check_discount_tiers(tiers: tuple[DiscountTier, ...]) -> None:
    # first matching tier wins
    previous = None
    for t in tiers:
        if not 0 <= t.percent <= 100:
            raise ConfigError(f"Discount percent must be between 0 and 100. Received: {t.percent}")
        if previous is not None and t.below <= previous:
            raise ConfigError("Discount tiers must be ascending by stock bound.")
        previous = t.below


# camelCase keys accepted in override files
_ALIASES = {
    "lowStockThreshold": "low_stock_threshold",
    "segmentThresholds": "segment_thresholds",
    "vatRate": "vat_rate",
    "taxBrackets": "tax_brackets",
    "categoryKeywords": "category_keywords",
    "defaultCategory": "default_category",
    "loyaltyRate": "loyalty_rate",
    "reorderTargetStock": "reorder_target_stock",
    "reorderCoverDays": "reorder_cover_days",
    "reorderLookbackDays": "reorder_lookback_days",
    "minReorderQuantity": "min_reorder_quantity",
    "discountTiers": "discount_tiers",
    "topProductsLimit": "top_products_limit",
}


def _tier(raw, fallback: TierThreshold) -> TierThreshold:
    if isinstance(raw, (int, float)):
        return TierThreshold(spend=float(raw), points=fallback.points)
    if isinstance(raw, dict):
        return TierThreshold(
            spend=float(raw.get("spend", fallback.spend)),
            points=int(raw.get("points", fallback.points)),
        )
    raise ConfigError(f"Invalid segment threshold: {raw!r}")


def _objects(raw) -> list[dict]:
    if not isinstance(raw, list):
        raise TypeError(f"expected a list of objects, got {type(raw).__name__}")
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise TypeError(f"item {i} must be an object, got {type(item).__name__}")
    return raw


def _parse_value(name: str, raw, base: InsightsConfig):
    if name == "segment_thresholds":
        if not isinstance(raw, dict):
            raise ConfigError("segmentThresholds must be an object with gold/silver.")
        current = base.segment_thresholds
        return SegmentThresholds(
            gold=_tier(raw["gold"], current.gold) if "gold" in raw else current.gold,
            silver=_tier(raw["silver"], current.silver) if "silver" in raw else current.silver,
        )
    if name == "tax_brackets":
        brackets = []
        for b in _objects(raw):
            up_to = b.get("upTo", b.get("up_to"))
            brackets.append(TaxBracket(up_to=None if up_to is None else float(up_to), rate=float(b["rate"])))
        return tuple(brackets)
    if name == "category_keywords":
        return tuple(
            CategoryRule(keyword=str(r["keyword"]), category=str(r["category"])) for r in _objects(raw)
        )
    if name == "discount_tiers":
        return tuple(DiscountTier(below=int(t["below"]), percent=int(t["percent"])) for t in _objects(raw))
    if name in ("vat_rate", "loyalty_rate"):
        return float(raw)
    if name == "default_category":
        return str(raw)
    return int(raw)


def config_from_dict(data: dict, base: InsightsConfig | None = None) -> InsightsConfig:
    base = base or InsightsConfig()
    known = {f.name for f in fields(InsightsConfig)}

    overrides = {}
    for key, raw in data.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise ConfigError(f"Unknown config key: {key}")
        try:
            overrides[name] = _parse_value(name, raw, base)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {key}: {e}") from e

    return replace(base, **overrides)


def load_config(path: Path | str, base: InsightsConfig | None = None) -> InsightsConfig:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object.")
    return config_from_dict(data, base)
