"""Resource-pack offer variants and reply payload helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Union


class ReplyResult(IntEnum):
    """Status codes carried by ``resource_pack_receive`` replies."""

    SUCCESSFULLY_LOADED = 0
    DECLINED = 1
    FAILED_DOWNLOAD = 2
    ACCEPTED = 3
    DOWNLOADED = 4
    INVALID_URL = 5
    FAILED_RELOAD = 6
    DISCARDED = 7


# Wire field names for the correlating token, in lookup order.
_IDENTIFIER_FIELDS: tuple[str, ...] = ("uuid", "UUID", "identifier")
_PROMPT_FIELDS: tuple[str, ...] = ("promptMessage", "prompt_message")

REPLY_IDENTIFIER_FIELD = "uuid"
REPLY_HASH_FIELD = "hash"
REPLY_RESULT_FIELD = "result"


@dataclass(frozen=True)
class LegacyOffer:
    """Hash-only offer pushed by servers without multi-pack support."""

    url: Optional[str] = None
    hash: Optional[str] = None
    forced: bool = False
    prompt_message: Any = None

    @property
    def identifier(self) -> None:
        return None

    def describe(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "hash": self.hash,
            "forced": self.forced,
            "promptMessage": self.prompt_message,
        }


@dataclass(frozen=True)
class ModernOffer:
    """Offer correlated by an opaque identifier (multi-pack servers)."""

    identifier: str
    url: Optional[str] = None
    hash: Optional[str] = None
    forced: bool = False
    prompt_message: Any = None

    def describe(self) -> Dict[str, Any]:
        return {
            REPLY_IDENTIFIER_FIELD: self.identifier,
            "url": self.url,
            "hash": self.hash,
            "forced": self.forced,
            "promptMessage": self.prompt_message,
        }


ResourcePackOffer = Union[ModernOffer, LegacyOffer]


def parse_offer(payload: object) -> ResourcePackOffer:
    """Return the offer variant described by the inbound ``payload``.

    Missing fields are tolerated and surface as ``None``; a payload that is
    not a mapping at all parses as an empty legacy offer.
    """

    if isinstance(payload, (ModernOffer, LegacyOffer)):
        return payload
    fields: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    url = _optional_text(fields.get("url"))
    pack_hash = _optional_text(fields.get("hash"))
    forced = fields.get("forced") is True
    prompt = _first_present(fields, _PROMPT_FIELDS)

    identifier = next(
        (fields[name] for name in _IDENTIFIER_FIELDS if fields.get(name)), None
    )
    if identifier is not None:
        return ModernOffer(
            identifier=str(identifier),
            url=url,
            hash=pack_hash,
            forced=forced,
            prompt_message=prompt,
        )
    return LegacyOffer(url=url, hash=pack_hash, forced=forced, prompt_message=prompt)


def build_reply(
    result: ReplyResult,
    *,
    identifier: Optional[str] = None,
    pack_hash: Optional[str] = None,
) -> Dict[str, Any]:
    """Assemble a ``resource_pack_receive`` payload for ``result``."""

    reply: Dict[str, Any] = {}
    if identifier is not None:
        reply[REPLY_IDENTIFIER_FIELD] = identifier
    elif pack_hash is not None:
        reply[REPLY_HASH_FIELD] = pack_hash
    reply[REPLY_RESULT_FIELD] = int(result)
    return reply


def _first_present(fields: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = fields.get(name)
        if value is not None:
            return value
    return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


__all__ = [
    "LegacyOffer",
    "ModernOffer",
    "REPLY_HASH_FIELD",
    "REPLY_IDENTIFIER_FIELD",
    "REPLY_RESULT_FIELD",
    "ReplyResult",
    "ResourcePackOffer",
    "build_reply",
    "parse_offer",
]
