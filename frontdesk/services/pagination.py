"""
Page/limit pagination shared by the list endpoints.
"""
from __future__ import annotations

import math
from typing import Any

from rest_framework import serializers

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=MAX_LIMIT, default=DEFAULT_LIMIT)
    search = serializers.CharField(required=False, allow_blank=True, max_length=200)


def paginate(qs, page: int, limit: int) -> tuple[list[Any], dict]:
    total = qs.count()
    start = (page - 1) * limit
    items = list(qs[start:start + limit])
    return items, {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': math.ceil(total / limit) if total else 0,
    }
