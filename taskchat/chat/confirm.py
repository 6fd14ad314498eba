# taskchat/chat/confirm.py
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List

from taskchat.constants import CANCEL_TOKENS, CONFIRM_TOKENS, DELETE_KEYWORDS


@dataclass(frozen=True)
class ConfirmationResult:
    confirmed: bool
    cancelled: bool


def tokenize(text: str) -> List[str]:
    """Lowercase words with punctuation removed."""
    if not text:
        return []
    cleaned = re.sub(r"[^\w\s]", " ", text.lower())
    return cleaned.split()


def parse_confirmation(
    text: str,
    confirm_tokens: Iterable[str] = CONFIRM_TOKENS,
    cancel_tokens: Iterable[str] = CANCEL_TOKENS,
    ignore: str = "",
) -> ConfirmationResult:
    """Read a yes/no reply. Words of `ignore` (e.g. the list title being discussed) do not count."""
    words: FrozenSet[str] = frozenset(tokenize(text)) - frozenset(tokenize(ignore))
    cancelled = not words.isdisjoint(cancel_tokens)
    # a cancel word overrides any yes in the same reply
    confirmed = not cancelled and not words.isdisjoint(confirm_tokens)
    return ConfirmationResult(confirmed=confirmed, cancelled=cancelled)


def asks_to_delete_list(assistant_text: str, list_title: str) -> bool:
    """True when an assistant message names the list and talks about deleting it."""
    title = " ".join(tokenize(list_title))
    if not title:
        return False
    text = " ".join(tokenize(assistant_text))
    return f" {title} " in f" {text} " and any(keyword in text for keyword in DELETE_KEYWORDS)
