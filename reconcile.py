from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from loguru import logger

from models import Picture, QuotaTier, UserPictureLink
from quota import tier_for

MIB = 1024 * 1024


class ClaimState(Enum):
    PENDING = "pending"
    # Charged to some user's quota during this run and kept
    RETAINED = "retained"


class DisableReason(Enum):
    DISABLED = "link is disabled"
    ORPHAN = "picture does not exist"
    USER_UNAVAILABLE = "user is not available"
    NO_SPACE = "not enough space"
    TOO_LARGE = "file too large"


@dataclass
class PictureEntry:
    picture: Picture
    state: ClaimState = ClaimState.PENDING


@dataclass
class Reconciliation:
    """Outcome of classifying every link and picture of one run."""
    unused: list[Picture] = field(default_factory=list)
    used: list[Picture] = field(default_factory=list)
    disabled: list[UserPictureLink] = field(default_factory=list)
    # link id -> why it was disabled
    reasons: dict[int, DisableReason] = field(default_factory=dict)
    # uid -> bytes counted against the user's storage quota
    usage: dict[int, int] = field(default_factory=dict)

    def surviving_link_ids(self, links: Iterable[UserPictureLink]) -> list[int]:
        """Ids of the links that were not disabled, in input order."""
        return [link.id for link in links if link.id not in self.reasons]


def reconcile(pictures: list[Picture], links: list[UserPictureLink],
              quotas: dict[int, tuple[QuotaTier, int]], available_users: Iterable[int]) -> Reconciliation:
    """
    Decides which pictures are still in use and which links must go.

    Links are processed in the given order. The first eligible link to reach a picture pays for it
    out of its owner's quota and retains it; later links to the same picture stay enabled without
    being charged. A link is disabled when it is switched off, points at a missing picture, belongs
    to a user who is no longer available, would bring its owner to or over the storage cap, or
    points at a picture larger than the per-file cap. Pictures no link retained are unused.
    """
    available_users = set(available_users)
    entries = {picture.pid: PictureEntry(picture) for picture in pictures}
    result = Reconciliation()

    def disable(link: UserPictureLink, reason: DisableReason):
        logger.debug(f"removing link {link.id} ({link.file_name}): {reason.value}")
        result.disabled.append(link)
        result.reasons[link.id] = reason

    for link in links:
        if link.available == 0:
            disable(link, DisableReason.DISABLED)
            continue

        entry = entries.get(link.pid)
        if entry is None:
            disable(link, DisableReason.ORPHAN)
            continue
        if link.uid not in available_users:
            disable(link, DisableReason.USER_UNAVAILABLE)
            continue
        if entry.state is ClaimState.RETAINED:
            continue

        tier = tier_for(quotas, link.uid)
        usage = result.usage.get(link.uid, 0) + entry.picture.size
        if usage / MIB >= tier.storage:
            disable(link, DisableReason.NO_SPACE)
            continue
        if entry.picture.size / MIB > tier.restrictions:
            disable(link, DisableReason.TOO_LARGE)
            continue

        result.usage[link.uid] = usage
        result.used.append(entry.picture)
        entry.state = ClaimState.RETAINED

    result.unused = [entry.picture for entry in entries.values() if entry.state is ClaimState.PENDING]
    logger.debug(f"{len(result.used)} pictures used, {len(result.unused)} unused, "
                 f"{len(result.disabled)} links disabled")
    return result
