"""
Data model for the event form.

EventValues enumerates every field the form recognizes together with its
default, so a session never has to guess which fields exist. Chain and
SessionUser are read-only records received from the server.
"""

import copy
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("eventform.models")


# Fixed display order of the event categories
CATEGORY_ORDER = ["children", "women", "men", "toys", "furniture", "books"]


def utc_now_iso() -> str:
    """Current instant as a canonical ISO-8601 UTC string."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return now.isoformat().replace("+00:00", "Z")


class UnknownFieldError(KeyError):
    """Raised when a field name is not part of EventValues."""

    pass


@dataclass
class EventValues:
    """
    Complete set of event form fields.

    Attributes:
        name: Event name
        description: Free text description
        latitude: Geocoded latitude of the address
        longitude: Geocoded longitude of the address
        address: Address as typed or selected by the user
        date: Canonical ISO-8601 timestamp of the event
        genders: Selected category identifiers (unique)
        image_url: Public URL of the event image, empty when none
        chain_uid: Related chain, empty when none
    """

    name: str = ""
    description: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    address: str = ""
    date: str = field(default_factory=utc_now_iso)
    genders: list[str] = field(default_factory=list)
    image_url: str = ""
    chain_uid: str = ""

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "EventValues":
        """
        Build values from a mapping, defaulting every missing field.

        Keys that are not form fields are ignored.
        """
        data = data or {}
        known = set(cls.field_names())
        ignored = sorted(k for k in data if k not in known)
        if ignored:
            logger.debug(f"Ignoring unknown event fields: {', '.join(ignored)}")

        kwargs = {k: copy.deepcopy(v) for k, v in data.items() if k in known and v is not None}
        values = cls(**kwargs)
        values.genders = unique_categories(values.genders)
        return values

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def copy(self) -> "EventValues":
        return copy.deepcopy(self)


def unique_categories(categories: list[str]) -> list[str]:
    """
    De-duplicate category identifiers, keeping first-seen order.

    Identifiers outside CATEGORY_ORDER are kept but logged.
    """
    seen: list[str] = []
    for category in categories or []:
        if category in seen:
            continue
        if category not in CATEGORY_ORDER:
            logger.warning(f"Unrecognized category identifier: {category}")
        seen.append(category)
    return seen


@dataclass(frozen=True)
class ImageResource:
    """
    A hosted image owned by a form session.

    Attributes:
        public_url: URL used to display the image
        delete_handle: Opaque token required to delete the image
    """

    public_url: str
    delete_handle: str


@dataclass(frozen=True)
class UploadConstraints:
    """Size and lifetime requested from the image host."""

    max_dimension: int = 800
    expiration_seconds: int = 60 * 60 * 24 * 30


@dataclass
class Chain:
    """A chain (loop) an event can be attached to."""

    uid: str
    name: str
    description: str = ""
    address: str = ""
    genders: list[str] = field(default_factory=list)
    open_to_new_members: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chain":
        return cls(
            uid=data["uid"],
            name=data.get("name", ""),
            description=data.get("description") or "",
            address=data.get("address") or "",
            genders=list(data.get("genders") or []),
            open_to_new_members=bool(data.get("open_to_new_members", True)),
        )


@dataclass(frozen=True)
class UserChain:
    """Membership of a user in a chain."""

    chain_uid: str
    is_chain_admin: bool = False


@dataclass
class SessionUser:
    """
    The user a form session acts for.

    Passed explicitly to the chain loader instead of being read from
    ambient state.
    """

    uid: str
    chains: list[UserChain] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionUser":
        return cls(
            uid=data["uid"],
            chains=[
                UserChain(
                    chain_uid=uc["chain_uid"],
                    is_chain_admin=bool(uc.get("is_chain_admin", False)),
                )
                for uc in data.get("chains") or []
            ],
        )

    def admin_chain_uids(self) -> list[str]:
        """Chains this user administers, in membership order."""
        return [uc.chain_uid for uc in self.chains if uc.is_chain_admin]
