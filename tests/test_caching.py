"""Tests for Redis caching implementation."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedException
from app.core.redis_client import CacheManager
from app.schemas.users import UserUpdate
from app.services.auth_service import AuthService
from app.services.registry_service import RegistryService
from app.services.user_service import UserService


def dict_backed_redis() -> MagicMock:
    """MagicMock Redis whose get/set/delete work on a plain dict."""
    store: dict[str, str] = {}
    mock_redis = MagicMock()
    mock_redis.store = store
    mock_redis.get.side_effect = store.get
    mock_redis.set.side_effect = lambda key, value: store.__setitem__(key, value)
    mock_redis.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
    mock_redis.exists.side_effect = lambda key: int(key in store)
    mock_redis.delete.side_effect = lambda *keys: sum(
        store.pop(key, None) is not None for key in keys
    )
    return mock_redis


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    assert cache_manager.get_json("test_key") is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"name": "Test", "value": 123}'
    assert cache_manager.get_json("test_key") == {"name": "Test", "value": 123}

    # Corrupt entries read as a miss
    mock_redis.get.return_value = "{not json"
    assert cache_manager.get_json("test_key") is None


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("test_key", {"name": "Test"}) is True
    mock_redis.set.assert_called_once()

    mock_redis.reset_mock()
    assert cache_manager.set_json("test_key", {"name": "Test"}, ttl=300) is True
    mock_redis.setex.assert_called_once_with("test_key", 300, '{"name": "Test"}')


def test_cache_manager_delete_pattern():
    """delete_pattern scans and deletes in batches."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)
    mock_redis.scan_iter.return_value = iter(["registry:A", "registry:B", "registry:C"])
    mock_redis.delete.return_value = 3

    result = cache_manager.delete_pattern("registry:*")

    mock_redis.scan_iter.assert_called_once_with(match="registry:*", count=500)
    mock_redis.delete.assert_called_once_with("registry:A", "registry:B", "registry:C")
    assert result == 3


def test_cache_manager_fails_open():
    """A Redis outage reads as a miss and never raises."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = RedisConnectionError("down")
    mock_redis.setex.side_effect = RedisConnectionError("down")
    mock_redis.scan_iter.side_effect = RedisConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("key") is None
    assert cache_manager.set_json("key", {"a": 1}, ttl=10) is False
    assert cache_manager.delete_pattern("key*") == 0


@pytest.mark.asyncio
async def test_registry_lookup_is_cached(db_session: AsyncSession, registry_record):
    """Second lookup is served from the cache."""
    mock_redis = dict_backed_redis()
    service = RegistryService(db_session, CacheManager(mock_redis))

    first = await service.lookup("21123456789")
    assert "registry:21123456789" in mock_redis.store

    # A service with no usable database still answers from the cache
    service_without_db = RegistryService(MagicMock(), CacheManager(mock_redis))
    second = await service_without_db.lookup("211 234 567 89")

    assert second == first
    service_without_db.db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_registry_lookup_miss_not_cached(db_session: AsyncSession):
    """Unknown certificates are not cached."""
    mock_redis = dict_backed_redis()

    assert await RegistryService(db_session, CacheManager(mock_redis)).lookup("NONE") is None
    assert mock_redis.store == {}


@pytest.mark.asyncio
async def test_user_cache_invalidation(db_session: AsyncSession, trekker):
    """Profile updates drop the cached account."""
    mock_redis = dict_backed_redis()
    service = UserService(CacheManager(mock_redis))

    await service.get_user_by_id(db_session, trekker["id"])
    assert f"user:{trekker['id']}" in mock_redis.store

    updated = await service.update_user(db_session, trekker["id"], UserUpdate(name="Novo Nome"))

    assert updated["name"] == "Novo Nome"
    assert f"user:{trekker['id']}" not in mock_redis.store
    assert (await service.get_user_by_id(db_session, trekker["id"]))["name"] == "Novo Nome"


def test_revoked_refresh_token_is_rejected():
    """Logout blacklists the refresh token."""
    auth_service = AuthService(CacheManager(dict_backed_redis()))
    tokens = auth_service.create_tokens("5f0c8a9e-0000-4000-8000-000000000001")

    assert auth_service.refresh_access_token(tokens.refresh_token).access_token

    auth_service.revoke_token(tokens.refresh_token)

    with pytest.raises(UnauthorizedException):
        auth_service.refresh_access_token(tokens.refresh_token)
