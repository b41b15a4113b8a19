import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _reset_throttles():
    # 限流计数存放在 locmem 缓存中，各用例之间清空
    cache.clear()
    yield
