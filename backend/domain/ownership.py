"""
Order ownership as a tagged union.

Historical rows recorded the owner either as a structured candidate id or as
the raw username. New orders are always written in the canonical form
(structured id when the caller has one); lookups match both variants.
"""
from dataclasses import dataclass

from domain.enums import OwnerKind


@dataclass(frozen=True)
class OwnerRef:
    kind: OwnerKind
    value: str

    @classmethod
    def structured(cls, candidate_id: str) -> "OwnerRef":
        return cls(OwnerKind.STRUCTURED_ID, str(candidate_id))

    @classmethod
    def legacy(cls, username: str) -> "OwnerRef":
        return cls(OwnerKind.LEGACY_NAME, username)

    @classmethod
    def from_storage(cls, kind: str, value: str) -> "OwnerRef":
        return cls(OwnerKind(kind), value)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "value": self.value}


def canonical_owner(candidate_id: str | None, username: str | None) -> OwnerRef:
    """The single form new orders are written with."""
    if candidate_id:
        return OwnerRef.structured(candidate_id)
    if username:
        return OwnerRef.legacy(username)
    raise ValueError("An owner needs a candidate id or a username")


def owner_variants(candidate_id: str | None, username: str | None) -> list[OwnerRef]:
    """Every stored form that may identify the same owner."""
    variants = []
    if candidate_id:
        variants.append(OwnerRef.structured(candidate_id))
    if username:
        variants.append(OwnerRef.legacy(username))
    return variants
