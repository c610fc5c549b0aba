"""
Utility functions for Brigade
"""
import math


def humanize(value):
    """'performance_event_excused' -> 'Performance Event Excused'"""
    if not value:
        return ''
    return ' '.join(word.capitalize() for word in str(value).split('_') if word)


def parse_page(value, default=1):
    try:
        page = int(value)
    except (TypeError, ValueError):
        return default
    return page if page > 0 else default


def paginate_list(items, page=1, page_size=20):
    """Slice a list and describe the page. Out of range pages clamp to the last one."""
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return {
        'results': items[start:start + page_size],
        'page': page,
        'page_size': page_size,
        'total': total,
        'total_pages': total_pages,
    }
