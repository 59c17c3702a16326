from typing import List, Optional, Union, get_args
from blogapi.schemas.blog import BlogFilters, SortField, SortOrder

SORT_FIELDS = get_args(SortField)
SORT_ORDERS = get_args(SortOrder)

# Largest page or offset accepted; anything bigger is treated as malformed
MAX_QUERY_INT = 2**31 - 1


def parse_int(value: Optional[str], minimum: int = 0, maximum: int = MAX_QUERY_INT) -> Optional[int]:
    """Parse a query value, returning None for anything absent, malformed or out of range."""
    if value is None:
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if minimum <= number <= maximum else None


def parse_tags(tags: Union[str, List[str], None]) -> List[str]:
    # ?tags=a&tags=b and ?tags=a,b are both accepted
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]
    result = []
    for value in tags:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def parse_blog_filters(
    tags: Union[str, List[str], None] = None,
    search: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    page: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> BlogFilters:
    """
    Build list filters from raw query parameters.

    Invalid values never fail the request: numbers fall back to their
    defaults and unknown sort options fall back to `createdAt desc`.
    A valid `page` takes precedence over `offset`.
    """
    limit_value = min(parse_int(limit, minimum=1) or default_limit, max_limit)

    page_value = parse_int(page, minimum=1)
    if page_value is not None:
        offset_value = (page_value - 1) * limit_value
    else:
        offset_value = parse_int(offset, minimum=0) or 0

    filters = BlogFilters(
        tags=parse_tags(tags),
        search=search.strip() if search and search.strip() else None,
        limit=limit_value,
        offset=offset_value,
    )
    if sort_by in SORT_FIELDS:
        filters.sort_by = sort_by
    if sort_order in SORT_ORDERS:
        filters.sort_order = sort_order
    return filters
