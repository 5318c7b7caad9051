"""Page/limit parsing for list endpoints."""

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _positive_int(raw: str | int | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def resolve_page_params(
    page: str | int | None, limit: str | int | None
) -> tuple[int, int, int]:
    """
    Return (page, limit, skip). Missing, non-numeric or non-positive values fall back
    to the defaults; limit is capped at MAX_LIMIT.
    """
    page_num = _positive_int(page, DEFAULT_PAGE)
    limit_num = min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT)
    return page_num, limit_num, (page_num - 1) * limit_num
