from __future__ import annotations

import logging
import math
import random
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Optional, Union

from possuite.domain.models import PAYMENT_METHODS, Product, SaleRecord, parse_iso

log = logging.getLogger(__name__)

DATE_RANGES = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}


@dataclass(frozen=True)
class DashboardStats:
    total_products: int
    in_stock_products: int
    out_of_stock_products: int
    low_stock_products: int


@dataclass(frozen=True)
class DashboardOverview:
    stats: DashboardStats
    low_stock: tuple[Product, ...]
    today_revenue: float
    today_sales: int


@dataclass(frozen=True)
class PaymentBucket:
    count: int = 0
    amount: float = 0.0


@dataclass(frozen=True)
class DailyTotals:
    day: date
    total_sales: int
    total_revenue: float
    total_items: int
    by_payment_method: dict[str, PaymentBucket] = field(default_factory=dict)


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0
    total_items: int = 0
    unique_cashiers: int = 0
    peak_hour: str = "N/A"
    growth_rate: float = 0.0


@dataclass(frozen=True)
class ForecastPoint:
    day: str
    predicted: float


@dataclass(frozen=True)
class Forecast:
    average_daily: float
    predicted_weekly: float
    next_7_days: tuple[ForecastPoint, ...]


class InsufficientData:
    """Returned instead of a forecast when the window holds too few sales."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "INSUFFICIENT_DATA"


INSUFFICIENT_DATA = InsufficientData()


@dataclass(frozen=True)
class AffinityPair:
    pair: str
    count: int
    products: tuple[str, str]


@dataclass(frozen=True)
class ProductPerformance:
    barcode: str
    name: str
    quantity: int
    revenue: float


@dataclass(frozen=True)
class RestockRecommendation:
    barcode: str
    name: str
    sold: int
    current_stock: int
    daily_velocity: float
    days_remaining: float
    suggested_quantity: int


@dataclass(frozen=True)
class Insight:
    kind: str
    message: str


# ---------- Pure derivations ----------
def dashboard_stats(products: Iterable[Product], threshold: int = 5) -> DashboardStats:
    products = list(products)
    return DashboardStats(
        total_products=len(products),
        in_stock_products=sum(1 for p in products if p.stock > 0),
        out_of_stock_products=sum(1 for p in products if p.stock == 0),
        low_stock_products=sum(1 for p in products if 0 < p.stock < threshold),
    )


def window_start(date_range: str, now: datetime) -> datetime:
    days = DATE_RANGES.get(date_range)
    if days is None:
        log.warning("unknown_date_range value=%s fallback=30d", date_range)
        days = DATE_RANGES["30d"]
    return now - timedelta(days=days)


def filter_sales(
    sales: Iterable[SaleRecord],
    store_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[SaleRecord]:
    """Sales matching the store and inclusive time bounds, newest first."""
    out = []
    for s in sales:
        if store_id and s.store_id != store_id:
            continue
        ts = parse_iso(s.timestamp)
        if start is not None and ts < start:
            continue
        if end is not None and ts > end:
            continue
        out.append(s)
    return sorted(out, key=lambda s: parse_iso(s.timestamp), reverse=True)


def daily_totals(sales: Iterable[SaleRecord], day: date, store_id: Optional[str] = None) -> DailyTotals:
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time(23, 59, 59, 999000))
    todays = filter_sales(sales, store_id=store_id, start=start, end=end)

    counts: Counter[str] = Counter()
    amounts: defaultdict[str, float] = defaultdict(float)
    for s in todays:
        counts[s.payment_method] += 1
        amounts[s.payment_method] += float(s.total)

    methods = list(PAYMENT_METHODS) + sorted(set(counts) - set(PAYMENT_METHODS))
    return DailyTotals(
        day=day,
        total_sales=len(todays),
        total_revenue=sum(float(s.total) for s in todays),
        total_items=sum(s.item_count for s in todays),
        by_payment_method={m: PaymentBucket(counts[m], amounts[m]) for m in methods},
    )


def growth_rate(sales: Iterable[SaleRecord]) -> float:
    """Revenue change of the newer half of the window over the older half, in %."""
    ordered = filter_sales(sales)
    mid = len(ordered) // 2
    older = sum(float(s.total) for s in ordered[mid:])
    newer = sum(float(s.total) for s in ordered[:mid])
    if older <= 0:
        return 0.0
    return (newer - older) / older * 100


def summarize(sales: Iterable[SaleRecord]) -> SalesSummary:
    sales = filter_sales(sales)
    if not sales:
        return SalesSummary()

    revenue = sum(float(s.total) for s in sales)
    hours = Counter(parse_iso(s.timestamp).hour for s in sales)
    peak_hour, _count = hours.most_common(1)[0]
    return SalesSummary(
        total_revenue=revenue,
        total_orders=len(sales),
        average_order_value=revenue / len(sales),
        total_items=sum(s.item_count for s in sales),
        unique_cashiers=len({s.cashier_name for s in sales}),
        peak_hour=f"{peak_hour}:00",
        growth_rate=growth_rate(sales),
    )


def forecast(
    sales: Iterable[SaleRecord],
    rng: Optional[random.Random] = None,
    min_sales: int = 7,
) -> Union[Forecast, InsufficientData]:
    """Naive moving average of daily revenue with +/-10% jitter per projected day."""
    sales = list(sales)
    if len(sales) < min_sales:
        return INSUFFICIENT_DATA

    rng = rng or random.Random()
    per_day: defaultdict[date, float] = defaultdict(float)
    for s in sales:
        per_day[parse_iso(s.timestamp).date()] += float(s.total)

    average = sum(per_day.values()) / len(per_day)
    points = tuple(
        ForecastPoint(day=f"Day {i + 1}", predicted=average * (1 + rng.uniform(-0.1, 0.1)))
        for i in range(7)
    )
    return Forecast(average_daily=average, predicted_weekly=average * 7, next_7_days=points)


def product_affinity(sales: Iterable[SaleRecord], limit: int = 5) -> list[AffinityPair]:
    counts: Counter[tuple[str, str]] = Counter()
    for s in sales:
        names = list(dict.fromkeys(it.name for it in s.items))
        if len(names) < 2:
            continue
        for i in range(len(names)):
            for j in range(i + 1, len(names)):
                counts[tuple(sorted((names[i], names[j])))] += 1

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [AffinityPair(pair=" + ".join(names), count=n, products=names) for names, n in ranked]


def top_products(sales: Iterable[SaleRecord], limit: int = 5) -> list[ProductPerformance]:
    stats: dict[str, dict] = {}
    for s in sales:
        for it in s.items:
            row = stats.setdefault(it.barcode, {"name": it.name, "quantity": 0, "revenue": 0.0})
            row["quantity"] += int(it.quantity)
            row["revenue"] += float(it.total)
    ranked = sorted(stats.items(), key=lambda kv: kv[1]["revenue"], reverse=True)[:limit]
    return [ProductPerformance(barcode=b, **row) for b, row in ranked]


def restock_recommendations(
    sales: Iterable[SaleRecord],
    products: Iterable[Product],
    window_days: int = 30,
    days_threshold: float = 14,
    min_stock: int = 10,
    limit: Optional[int] = 5,
) -> list[RestockRecommendation]:
    catalog = {p.barcode: p for p in products}
    sold: dict[str, dict] = {}
    for s in sales:
        for it in s.items:
            row = sold.setdefault(it.barcode, {"name": it.name, "sold": 0})
            row["sold"] += int(it.quantity)

    recommendations = []
    for barcode, row in sold.items():
        product = catalog.get(barcode)
        current = int(product.stock) if product else 0
        velocity = row["sold"] / window_days
        remaining = current / velocity if velocity > 0 else math.inf
        if remaining < days_threshold or current < min_stock:
            recommendations.append(
                RestockRecommendation(
                    barcode=barcode,
                    name=row["name"],
                    sold=row["sold"],
                    current_stock=current,
                    daily_velocity=velocity,
                    days_remaining=remaining,
                    suggested_quantity=row["sold"] * 2,
                )
            )

    recommendations.sort(key=lambda r: r.days_remaining)
    return recommendations[:limit] if limit is not None else recommendations


def insights(
    summary: SalesSummary,
    affinity: list[AffinityPair],
    products: Iterable[Product],
    low_stock_level: int = 10,
) -> list[Insight]:
    out = []
    if summary.growth_rate > 10:
        out.append(Insight("positive", f"Sales are trending up! {summary.growth_rate:.1f}% growth detected."))
    elif summary.growth_rate < -10:
        out.append(
            Insight("warning", f"Sales declining by {abs(summary.growth_rate):.1f}%. Consider promotions.")
        )

    if summary.average_order_value < 50:
        out.append(Insight("info", "Low average order value. Consider bundling products or upselling."))

    if affinity:
        out.append(Insight("positive", f'Strong product affinity detected. Promote "{affinity[0].pair}" together.'))

    low = [p for p in products if p.stock < low_stock_level]
    if low:
        out.append(Insight("warning", f"{len(low)} products are running low on stock. Restock recommended."))
    return out


# ---------- Service ----------
class AnalyticsService:
    """Read-only views over the sale ledger and catalog for one store context."""

    def __init__(
        self,
        catalog,
        sales,
        settings=None,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.sales = sales
        self.clock = clock
        self.rng = rng or random.Random()
        self.low_stock_threshold = getattr(settings, "low_stock_threshold", 5)
        self.window_days = getattr(settings, "restock_window_days", 30)
        self.days_threshold = getattr(settings, "restock_days_threshold", 14)
        self.restock_min_stock = getattr(settings, "restock_min_stock", 10)
        self.forecast_min_sales = getattr(settings, "forecast_min_sales", 7)

    def window(self, store_id: Optional[str] = None, date_range: str = "30d") -> list[SaleRecord]:
        now = self.clock()
        return filter_sales(self.sales.all_sales(), store_id=store_id, start=window_start(date_range, now), end=now)

    def dashboard(self, store_id: Optional[str] = None) -> DashboardOverview:
        products = self.catalog.list_products()
        today = daily_totals(self.sales.all_sales(), self.clock().date(), store_id=store_id)
        return DashboardOverview(
            stats=dashboard_stats(products, self.low_stock_threshold),
            low_stock=tuple(p for p in products if 0 < p.stock < self.low_stock_threshold),
            today_revenue=today.total_revenue,
            today_sales=today.total_sales,
        )

    def daily_totals(self, day: Optional[date] = None, store_id: Optional[str] = None) -> DailyTotals:
        return daily_totals(self.sales.all_sales(), day or self.clock().date(), store_id=store_id)

    def summary(self, store_id: Optional[str] = None, date_range: str = "30d") -> SalesSummary:
        return summarize(self.window(store_id, date_range))

    def forecast(self, store_id: Optional[str] = None, date_range: str = "30d") -> Union[Forecast, InsufficientData]:
        return forecast(self.window(store_id, date_range), self.rng, self.forecast_min_sales)

    def affinity(self, store_id: Optional[str] = None, date_range: str = "30d") -> list[AffinityPair]:
        return product_affinity(self.window(store_id, date_range))

    def top_products(self, store_id: Optional[str] = None, date_range: str = "30d") -> list[ProductPerformance]:
        return top_products(self.window(store_id, date_range))

    def restock(self, store_id: Optional[str] = None, date_range: str = "30d") -> list[RestockRecommendation]:
        return restock_recommendations(
            self.window(store_id, date_range),
            self.catalog.list_products(),
            window_days=self.window_days,
            days_threshold=self.days_threshold,
            min_stock=self.restock_min_stock,
        )

    def insights(self, store_id: Optional[str] = None, date_range: str = "30d") -> list[Insight]:
        sales = self.window(store_id, date_range)
        return insights(summarize(sales), product_affinity(sales), self.catalog.list_products(), self.restock_min_stock)
