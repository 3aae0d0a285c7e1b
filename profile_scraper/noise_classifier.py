"""
Noise Classifier - rejects decoy entries injected by "who viewed this" /
"people also viewed" widgets.

These widgets render with the same markup as genuine entries, so the rules
are local heuristics over the extracted fields:

Rule 1: label starts with the decoy prefix ("Someone at ...")
Rule 2: label or organization carries a truncation marker (ellipsis)
Rule 3: label reads "<word> at <word>" and no organization/date was found
Rule 4: no organization, no date, and none of the kind's discriminating fields
Rule 5: label is page chrome ("Show all 12 experiences", "3 endorsements")

Any matching rule rejects. Dropping a sparse genuine entry is preferred over
keeping decoy data. The rule set was tuned against observed decoys and is not
claimed to be complete for other layouts.
"""

import re
from typing import List

from .config import logger


class NoiseClassifier:
    """Deterministic decoy detector for extracted entities and raw fragments."""

    DECOY_PREFIX = "someone at"

    def __init__(self):
        self.ellipsis_pattern = re.compile(r"…|\.\.\.")
        self.word_at_word_pattern = re.compile(r"\b\S+\s+at\s+\S+", re.I)
        self.chrome_pattern = re.compile(
            r"^(show all|see all|show more|see more|…see more|show less)\b|"
            r"^(show|see) (credential|project|publication|patent)\b|"
            r"\bendorsements?\b|"
            r"^(private to you|edit language|add language)\b|"
            r"\b(viewers?|who viewed|people also viewed|also viewed)\b",
            re.I,
        )

    # --- Text level ---
    def has_decoy_prefix(self, text: str) -> bool:
        return (text or "").strip().lower().startswith(self.DECOY_PREFIX)

    def is_truncated(self, text: str) -> bool:
        return bool(text) and bool(self.ellipsis_pattern.search(text))

    def is_chrome(self, text: str) -> bool:
        return bool(text) and bool(self.chrome_pattern.search(text.strip()))

    def is_noise_text(self, text: str) -> bool:
        """Fragment-level check used before a fragment may fill a field."""
        if not text or not text.strip():
            return True
        return self.has_decoy_prefix(text) or self.is_truncated(text) or self.is_chrome(text)

    # --- Entity level ---
    def reasons(self, entity) -> List[str]:
        """Names of every rule the entity trips (empty list = genuine)."""
        label = (entity.label or "").strip()
        organization = (entity.organization or "").strip()
        has_date = not entity.dates.is_empty
        found = []

        if not label:
            found.append("empty_label")
            return found
        if self.has_decoy_prefix(label) or self.has_decoy_prefix(organization):
            found.append("decoy_prefix")
        if self.is_truncated(label) or self.is_truncated(organization):
            found.append("truncated")
        if self.word_at_word_pattern.search(label) and not organization and not has_date:
            found.append("word_at_word")
        if not organization and not has_date and not self._has_discriminator(entity):
            found.append("no_anchor")
        if self.is_chrome(label):
            found.append("page_chrome")
        return found

    def is_noise(self, entity) -> bool:
        found = self.reasons(entity)
        if found:
            logger.debug(f"Dropping {entity.KIND} '{entity.label}' as noise: {', '.join(found)}")
        return bool(found)

    def filter(self, entities):
        """Keep genuine entities, preserving order."""
        return [e for e in entities if not self.is_noise(e)]

    @staticmethod
    def _has_discriminator(entity) -> bool:
        for name in entity.DISCRIMINATORS:
            value = getattr(entity, name, "")
            if value:
                return True
        return False


# Singleton instance for easy import
_classifier = None


def get_classifier() -> NoiseClassifier:
    """Get singleton classifier instance."""
    global _classifier
    if _classifier is None:
        _classifier = NoiseClassifier()
    return _classifier


def is_noise(entity) -> bool:
    """Convenience function to classify a single entity."""
    return get_classifier().is_noise(entity)


def is_noise_text(text: str) -> bool:
    """Convenience function to check a single fragment."""
    return get_classifier().is_noise_text(text)
