"""
Query string parsing for list endpoints.
"""

from apps.core.exceptions import ValidationFailed


def int_param(request, name: str, default: int, minimum: int = 0, maximum: int = None) -> int:
    """
    Integer query parameter clamped to [minimum, maximum].

    Raises:
        ValidationFailed: If the value is not an integer
    """
    raw = request.query_params.get(name) if hasattr(request, 'query_params') else request.GET.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed(f'{name} must be an integer', details={name: ['A valid integer is required.']})
    value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def pagination(request, default_limit: int = 25, max_limit: int = 100) -> tuple:
    """(limit, offset) from ?limit=&offset="""
    return (
        int_param(request, 'limit', default_limit, 1, max_limit),
        int_param(request, 'offset', 0, 0),
    )
