from dataclasses import dataclass


@dataclass(frozen=True)
class Picture:
    """A stored picture and its three file variants."""
    pid: str
    size: int
    original: str
    thumbnail: str
    watermark: str

    @property
    def paths(self) -> tuple[str, str, str]:
        return (self.original, self.thumbnail, self.watermark)


@dataclass(frozen=True)
class UserPictureLink:
    """One user's visibility of one picture."""
    id: int
    uid: int
    pid: str
    available: int
    file_name: str


@dataclass(frozen=True)
class PermissionGrant:
    id: int
    uid: int
    permission: str
    # Epoch milliseconds, 0 means the grant never expires
    expiry: int
    available: int


@dataclass(frozen=True)
class QuotaTier:
    priority: int
    # Total storage per user, MiB
    storage: float
    # Largest single picture, MiB
    restrictions: float


@dataclass(frozen=True)
class User:
    uid: int
    username: str
    available: int


@dataclass(frozen=True)
class Share:
    # Same value as the id of the shared UserPictureLink
    id: int
    uid: int
    # Epoch milliseconds
    expiry: int
