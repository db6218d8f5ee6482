"""
Text processing shared by every aggregation task:
separator-based tokenization, emoji stripping and entity filtering.
"""

from typing import Iterator

import emoji
import regex

from chatstats.common.models import Message, MessageType, TextEntity

# Characters a segment is split on. Output compatibility depends on this exact set.
SEPARATORS = (' ', ',', '.', '(', ')', '-', '!', '?', "'", '"', '\n', '\t')

_SEPARATOR_PATTERN = regex.compile('|'.join(regex.escape(s) for s in SEPARATORS))
_GRAPHEME_PATTERN = regex.compile(r'\X')


def remove_emojis(token: str) -> str:
    """
    Strip every emoji grapheme cluster from a token.

    Works on extended grapheme clusters rather than code points so that
    multi-codepoint sequences (ZWJ families, flags, skin tones) disappear as a
    whole instead of leaving modifiers behind.

    Args:
        token: Raw fragment produced by the separator split

    Returns:
        The token without emoji, possibly empty. The input object itself is
        returned when nothing was removed.
    """
    if token.isascii():
        return token

    kept = []
    removed = False
    for grapheme in _GRAPHEME_PATTERN.findall(token):
        if emoji.is_emoji(grapheme):
            removed = True
        else:
            kept.append(grapheme)

    if not removed:
        return token
    return ''.join(kept)


def split_fragments(text: str) -> Iterator[str]:
    """Yield the non-empty fragments of text between separators"""
    for fragment in _SEPARATOR_PATTERN.split(text):
        if fragment:
            yield fragment


def tokenize(text: str) -> Iterator[str]:
    """
    Yield the normalized word tokens of a text segment.

    Fragments made only of emoji normalize to an empty string and are
    not words, so they are skipped.
    """
    for fragment in split_fragments(text):
        token = remove_emojis(fragment)
        if token:
            yield token


def is_countable_message(message: Message) -> bool:
    """Service messages never contribute tokens"""
    return message.type is MessageType.MESSAGE


def is_countable_entity(entity: TextEntity) -> bool:
    """Meta entities (phones, mentions, emails, ...) never contribute tokens"""
    return not entity.type.is_meta
