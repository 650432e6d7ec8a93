"""
Mention Matching Engine
Detects and counts brand / competitor mentions in provider text
"""

import re
from typing import List, Optional, Pattern, Protocol, Sequence


class MatchableEntity(Protocol):
    """Anything with a name, aliases and an optional domain"""
    name: str
    aliases: Sequence[str]
    domain: Optional[str]


class MentionMatcher:
    """
    Matches one entity in text:
    1. Presence: case-insensitive substring of name, any alias, or domain
    2. Count: escaped name pattern hits plus each escaped alias pattern hits

    Name and alias hits are counted independently, so an alias contained in
    the name ("Acme" inside "Acme Corp") is counted on top of the name.
    """

    def __init__(self, entity: MatchableEntity):
        self.entity = entity
        self._build_patterns()

    def _build_patterns(self):
        """Compile count patterns and presence terms once per entity"""
        name = (self.entity.name or "").strip()
        aliases = [a.strip() for a in (self.entity.aliases or []) if a and a.strip()]

        self.patterns: List[Pattern[str]] = []
        self.terms: List[str] = []

        if not name:
            return

        for term in [name] + aliases:
            self.patterns.append(re.compile(re.escape(term), re.IGNORECASE))
            self.terms.append(term.lower())

        domain = (self.entity.domain or "").strip().lower()
        if domain:
            self.terms.append(domain)

    @property
    def name(self) -> str:
        return self.entity.name

    def is_mentioned(self, text: Optional[str]) -> bool:
        """True when the name, any alias, or the domain appears in text"""
        if not text or not self.terms:
            return False
        text_lower = text.lower()
        return any(term in text_lower for term in self.terms)

    def count_mentions(self, text: Optional[str]) -> int:
        """Occurrences of the name plus occurrences of every alias"""
        if not text or not self.patterns:
            return 0
        return sum(len(pattern.findall(text)) for pattern in self.patterns)


def is_mentioned(text: Optional[str], entity: MatchableEntity) -> bool:
    return MentionMatcher(entity).is_mentioned(text)


def count_mentions(text: Optional[str], entity: MatchableEntity) -> int:
    return MentionMatcher(entity).count_mentions(text)
