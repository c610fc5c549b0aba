"""
Vendor price history and the dashboard price-change ticker.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.db.models import F, Q
from django.utils import timezone

from nexus.services import nexus
from .models import VendorPriceHistory

logger = logging.getLogger(__name__)

FILTER_TYPES = ('increase', 'decrease')


def record_price(organization, vendor, item_code, product_name, price, effective_date, source_type='invoice', user=None):
    """Append a price row, carrying the previous price for the same vendor item."""
    price = Decimal(str(price))
    previous = (
        VendorPriceHistory.objects.filter(organization=organization, vendor=vendor, item_code=item_code)
        .order_by('-effective_date', '-created_at')
        .first()
    )
    row = VendorPriceHistory.objects.create(
        organization=organization,
        vendor=vendor,
        item_code=item_code,
        product_name=product_name,
        price=price,
        previous_price=previous.price if previous else None,
        effective_date=effective_date,
        previous_effective_date=previous.effective_date if previous else None,
        source_type=source_type,
    )
    if previous is not None and previous.price != price:
        nexus(
            organization=organization,
            user=user,
            activity_type='price_change_detected',
            details={
                'item': product_name,
                'item_code': item_code,
                'vendor': vendor,
                'old_price': previous.price,
                'new_price': price,
                'change_percent': row.change_percent,
            },
        )
    return row


def _change_row(row):
    return {
        'id': str(row.id),
        'vendor': row.vendor,
        'item_code': row.item_code or '',
        'product_name': row.product_name or 'Unknown Product',
        'old_price': row.previous_price,
        'new_price': row.price,
        'change_percent': row.change_percent,
        'effective_date': row.effective_date,
        'previous_effective_date': row.previous_effective_date,
        'created_at': row.created_at,
    }


def price_changes(organization, days=30, filter_type=None, ingredient=None):
    """Price changes recorded in the last ``days`` days, newest first."""
    since = timezone.now() - timedelta(days=days)
    qs = (
        VendorPriceHistory.objects.filter(organization=organization, created_at__gte=since)
        .exclude(previous_price__isnull=True)
        .exclude(previous_price=F('price'))
    )
    if ingredient:
        qs = qs.filter(Q(item_code=ingredient) | Q(product_name__icontains=ingredient))
    if filter_type == 'increase':
        qs = qs.filter(price__gt=F('previous_price'))
    elif filter_type == 'decrease':
        qs = qs.filter(price__lt=F('previous_price'))
    return [_change_row(row) for row in qs.order_by('-created_at')]


def ticker_stats(changes):
    increases = [c for c in changes if c['change_percent'] > 0]
    decreases = [c for c in changes if c['change_percent'] < 0]
    largest = max(increases, key=lambda c: c['change_percent'], default=None)
    average = sum(c['change_percent'] for c in changes) / len(changes) if changes else 0
    return {
        'count': len(changes),
        'increases': len(increases),
        'decreases': len(decreases),
        'largest_increase': largest,
        'average_change': round(average, 2),
    }
