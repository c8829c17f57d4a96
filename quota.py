from datetime import datetime, timedelta

from models import PermissionGrant, QuotaTier

# Applies to users without a usable permission grant and to unknown tier names
DEFAULT_TIER = QuotaTier(priority=0, storage=2048.0, restrictions=50.0)

TIERS: dict[str, QuotaTier] = {
    "started": QuotaTier(priority=1, storage=10240.0, restrictions=50.0),
    "advanced": QuotaTier(priority=2, storage=51200.0, restrictions=100.0),
    "professional": QuotaTier(priority=3, storage=102400.0, restrictions=999999.0),
}


def get_tier(name: str) -> QuotaTier:
    """Looks up a tier by its permission name, case-insensitively."""
    return TIERS.get(name.lower(), DEFAULT_TIER)


def resolve_quotas(permissions: list[PermissionGrant], now: datetime,
                   grace_days: int = 180) -> dict[int, tuple[QuotaTier, int]]:
    """
    Picks the governing tier for every user that holds at least one usable grant.
    A grant is usable when it is available and either never expires or expired less than
    `grace_days` ago. The highest priority wins; on equal priority the first grant seen is kept.
    Returns uid -> (tier, expiry of the winning grant).
    """
    cutoff_ms = int((now - timedelta(days=grace_days)).timestamp() * 1000)
    resolved: dict[int, tuple[QuotaTier, int]] = {}

    for grant in permissions:
        if grant.available == 0:
            continue
        if grant.expiry != 0 and grant.expiry < cutoff_ms:
            continue

        tier = get_tier(grant.permission)
        current = resolved.get(grant.uid)
        if current is None or tier.priority > current[0].priority:
            resolved[grant.uid] = (tier, grant.expiry)

    return resolved


def tier_for(quotas: dict[int, tuple[QuotaTier, int]], uid: int) -> QuotaTier:
    resolved = quotas.get(uid)
    return resolved[0] if resolved else DEFAULT_TIER
