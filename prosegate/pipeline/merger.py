"""Correction merger - applies whole-field reviewer rewrites to a bundle."""

import logging
import re
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from prosegate.contracts.facts import FactContext
from prosegate.contracts.prose import ProseBundle, ProseValue, flatten_value

logger = logging.getLogger(__name__)

BARE_NUMBER = re.compile(r"[\d.,]+")
SHORT_TOKEN_LENGTH = 3


class RejectedCorrection(BaseModel):
    """A rewrite discarded because it lost fact tokens the draft contained."""

    model_config = ConfigDict(frozen=True)

    field: str
    missing_tokens: tuple[str, ...]


class MergeOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    bundle: ProseBundle
    applied: tuple[str, ...] = Field(default=(), description="Keys replaced")
    dropped: tuple[str, ...] = Field(
        default=(), description="Correction keys that are not bundle keys"
    )
    rejected: tuple[RejectedCorrection, ...] = ()


def coerce_value(current: ProseValue | None, corrected: ProseValue) -> ProseValue:
    """Give a correction the same kind (text or list) as the value it replaces."""
    if isinstance(current, list) and isinstance(corrected, str):
        return [line.strip() for line in corrected.splitlines() if line.strip()]
    if isinstance(current, str) and isinstance(corrected, list):
        return "\n\n".join(corrected)
    return corrected


def apply_corrections(
    bundle: ProseBundle, corrections: Mapping[str, ProseValue]
) -> ProseBundle:
    """
    Replace the named fields, leaving every other field untouched.

    Keys outside the bundle are ignored, so the key set never changes.
    Applying the same corrections twice gives the same bundle as once.
    """
    updates = {
        key: coerce_value(bundle.get(key), value)
        for key, value in corrections.items()
        if key in bundle.fields
    }
    return bundle.with_fields(updates)


def contains_token(text: str, token: str) -> bool:
    """
    Fact token containment.

    Bare numbers and very short tokens must stand alone, so a DAR of "4" is
    not found inside "2024" or "v1.4". Longer formatted values match as
    substrings.
    """
    if len(token) >= SHORT_TOKEN_LENGTH and not BARE_NUMBER.fullmatch(token):
        return token in text
    return re.search(rf"(?<![\w.]){re.escape(token)}(?!\w|\.\d)", text) is not None


def missing_tokens(draft: str, corrected: str, facts: FactContext) -> list[str]:
    """Fact tokens present in the draft text but absent from the correction."""
    return [
        token
        for token in dict.fromkeys(facts.tokens())
        if contains_token(draft, token) and not contains_token(corrected, token)
    ]


def merge_corrections(
    bundle: ProseBundle,
    corrections: Mapping[str, ProseValue],
    facts: FactContext,
) -> MergeOutcome:
    """Apply corrections that keep every fact token of the field they replace."""
    accepted: dict[str, ProseValue] = {}
    dropped: list[str] = []
    rejected: list[RejectedCorrection] = []

    for key, value in corrections.items():
        if key not in bundle.fields:
            dropped.append(key)
            logger.warning("Dropped correction for unknown field %r", key)
            continue
        corrected = coerce_value(bundle.get(key), value)
        lost = missing_tokens(bundle.field_text(key), flatten_value(corrected), facts)
        if lost:
            rejected.append(RejectedCorrection(field=key, missing_tokens=tuple(lost)))
            logger.warning(
                "Discarded correction for %r: lost fact tokens %s", key, lost
            )
            continue
        accepted[key] = corrected

    return MergeOutcome(
        bundle=apply_corrections(bundle, accepted),
        applied=tuple(accepted),
        dropped=tuple(dropped),
        rejected=tuple(rejected),
    )


__all__ = [
    "RejectedCorrection",
    "MergeOutcome",
    "coerce_value",
    "apply_corrections",
    "contains_token",
    "missing_tokens",
    "merge_corrections",
]
