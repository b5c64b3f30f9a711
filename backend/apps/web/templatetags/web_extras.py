from django import template

from apps.core.utils.text import time_ago as _time_ago, truncate as _truncate

register = template.Library()


@register.filter
def time_ago(value):
    return _time_ago(value)


@register.filter
def truncate_text(value, length):
    return _truncate(value, int(length))
