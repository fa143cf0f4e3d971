"""
Skill normalization: free-text skill lists -> canonical token sets
"""
import re
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from jobfit.models.settings import DEFAULT_SYNONYMS
from jobfit.utils.exceptions import ConfigurationError, MalformedSkillInput
from jobfit.utils.logging_config import get_logger

logger = get_logger(__name__)

_DELIMITERS = re.compile(r"[,;\n\r]+")
_DISALLOWED = re.compile(r"[^a-z0-9\s+#./-]")
_WHITESPACE = re.compile(r"\s+")
_LEADING_EDGE = " /-"
_TRAILING_EDGE = " ./-"


def clean_token(raw: str) -> str:
    """Lowercase, drop punctuation other than + # . / -, trim edges and collapse spaces."""
    token = _DISALLOWED.sub(" ", raw.lower())
    token = _WHITESPACE.sub(" ", token)
    return token.lstrip(_LEADING_EDGE).rstrip(_TRAILING_EDGE)


def split_skills(value: Any) -> List[str]:
    """Split a delimited string (or an iterable of strings) into raw tokens.

    Raises MalformedSkillInput for anything that is not text.
    """
    if value is None:
        return []
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedSkillInput("Skill text is not valid UTF-8", value=value, cause=e) from e
    if isinstance(value, str):
        return [p for p in _DELIMITERS.split(value) if p.strip()]
    if isinstance(value, (list, tuple, set, frozenset)):
        parts = []
        for item in value:
            if not isinstance(item, str):
                raise MalformedSkillInput("Skill list contains a non-string entry", value=item)
            parts.extend(split_skills(item))
        return parts
    raise MalformedSkillInput("Unsupported skill input", value=value)


def _resolve_synonyms(synonyms: Mapping[str, str]) -> Dict[str, str]:
    """Clean every alias/target and follow chains so each alias maps to a final token."""
    cleaned: Dict[str, str] = {}
    for alias, target in synonyms.items():
        key, value = clean_token(alias), clean_token(target)
        if key and value and key != value:
            cleaned[key] = value

    resolved: Dict[str, str] = {}
    for alias in cleaned:
        seen = {alias}
        target = cleaned[alias]
        while target in cleaned:
            if target in seen:
                raise ConfigurationError(
                    f"Synonym cycle detected through '{target}'",
                    config_key="synonyms",
                    config_value=alias,
                )
            seen.add(target)
            target = cleaned[target]
        resolved[alias] = target
    return resolved


class SkillNormalizer:
    """Turns skill text into a set of canonical lowercase tokens.

    ``normalize`` is idempotent: every synonym target is itself a final
    token, so feeding a normalized set back in returns the same set.
    """

    def __init__(self, synonyms: Optional[Mapping[str, str]] = None):
        self.synonyms = _resolve_synonyms(DEFAULT_SYNONYMS if synonyms is None else synonyms)

    def canonical(self, raw: str) -> str:
        token = clean_token(raw)
        return self.synonyms.get(token, token)

    def normalize(self, value: Any) -> FrozenSet[str]:
        try:
            raw_tokens = split_skills(value)
        except MalformedSkillInput as e:
            logger.debug(f"Treating malformed skill input as empty: {e.message}", extra=e.details)
            return frozenset()
        return frozenset(t for t in (self.canonical(r) for r in raw_tokens) if t)

