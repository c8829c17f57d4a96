from __future__ import annotations

from datetime import timedelta

from models import PermissionGrant
from quota import DEFAULT_TIER, TIERS, get_tier, resolve_quotas, tier_for


def _ms(moment) -> int:
    return int(moment.timestamp() * 1000)


def test_get_tier_is_case_insensitive_and_falls_back_to_default() -> None:
    assert get_tier("Advanced") is TIERS["advanced"]
    assert get_tier("PROFESSIONAL") is TIERS["professional"]
    assert get_tier("gold") == DEFAULT_TIER


def test_highest_priority_grant_wins(now) -> None:
    grants = [
        PermissionGrant(1, 7, "started", 0, 1),
        PermissionGrant(2, 7, "professional", 0, 1),
        PermissionGrant(3, 7, "advanced", 0, 1),
    ]
    quotas = resolve_quotas(grants, now)
    assert quotas[7] == (TIERS["professional"], 0)


def test_equal_priority_keeps_first_grant(now) -> None:
    first_expiry = _ms(now + timedelta(days=30))
    grants = [
        PermissionGrant(1, 7, "advanced", first_expiry, 1),
        PermissionGrant(2, 7, "ADVANCED", 0, 1),
    ]
    assert resolve_quotas(grants, now)[7] == (TIERS["advanced"], first_expiry)


def test_unavailable_grants_are_ignored(now) -> None:
    grants = [PermissionGrant(1, 7, "professional", 0, 0)]
    quotas = resolve_quotas(grants, now)
    assert 7 not in quotas
    assert tier_for(quotas, 7) == DEFAULT_TIER


def test_recently_expired_grant_still_counts(now) -> None:
    grants = [PermissionGrant(1, 7, "advanced", _ms(now - timedelta(days=10)), 1)]
    assert tier_for(resolve_quotas(grants, now), 7) == TIERS["advanced"]


def test_long_expired_grant_is_ignored(now) -> None:
    grants = [PermissionGrant(1, 7, "advanced", _ms(now - timedelta(days=200)), 1)]
    assert tier_for(resolve_quotas(grants, now), 7) == DEFAULT_TIER


def test_grace_period_is_configurable(now) -> None:
    grants = [PermissionGrant(1, 7, "advanced", _ms(now - timedelta(days=10)), 1)]
    assert tier_for(resolve_quotas(grants, now, grace_days=5), 7) == DEFAULT_TIER
