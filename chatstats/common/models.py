"""
Data model for exported chat transcripts and the statistics computed from them.

The transcript classes mirror the Telegram JSON export: a chat has a name, a
type, an id and an ordered list of messages; every message carries a list of
rich-text entities. Decoding is strict: an unknown enum value or a missing
required key raises TranscriptFormatError instead of being silently skipped.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from chatstats.common.errors import TranscriptFormatError

# token -> number of occurrences
FrequencyMap = Dict[str, int]
# author -> FrequencyMap
MembersFrequencyMap = Dict[str, FrequencyMap]


class ChatType(Enum):
    """Kind of chat the transcript was exported from"""
    PUBLIC_CHANNEL = "public_channel"
    PRIVATE_CHANNEL = "private_channel"
    PUBLIC_SUPERGROUP = "public_supergroup"
    PRIVATE_SUPERGROUP = "private_supergroup"
    PERSONAL_CHAT = "personal_chat"
    CHAT_FORBIDDEN = "chat_forbidden"


class MessageType(Enum):
    """Service messages are system notices, everything else is a regular message"""
    SERVICE = "service"
    MESSAGE = "message"


class TextEntityType(Enum):
    """Styling kind of a run of text inside a message"""
    PRE = "pre"
    BOLD = "bold"
    LINK = "link"
    CODE = "code"
    EMAIL = "email"
    PLAIN = "plain"
    PHONE = "phone"
    ITALIC = "italic"
    CASHTAG = "cashtag"
    SPOILER = "spoiler"
    MENTION = "mention"
    HASHTAG = "hashtag"
    TEXT_LINK = "text_link"
    UNDERLINE = "underline"
    BOT_COMMAND = "bot_command"
    CUSTOM_EMOJI = "custom_emoji"
    MENTION_NAME = "mention_name"
    STRIKETHROUGH = "strikethrough"

    @property
    def is_meta(self) -> bool:
        """True for kinds that hold non-lexical content"""
        return self in _META_ENTITY_TYPES


_META_ENTITY_TYPES = frozenset({
    TextEntityType.PHONE,
    TextEntityType.BOT_COMMAND,
    TextEntityType.EMAIL,
    TextEntityType.CUSTOM_EMOJI,
    TextEntityType.MENTION,
})


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, Mapping):
        raise TranscriptFormatError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise TranscriptFormatError(f"{where}: missing required field '{key}'")
    return data[key]


def _require_int(value: Any, field_name: str, where: str) -> int:
    # bool is an int subclass but never a valid id
    if not isinstance(value, int) or isinstance(value, bool):
        raise TranscriptFormatError(f"{where}: '{field_name}' must be an integer")
    return value


def _enum_value(enum_cls, value: Any, where: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise TranscriptFormatError(
            f"{where}: unknown {enum_cls.__name__} '{value}'"
        ) from None


@dataclass(frozen=True)
class TextEntity:
    """A styled run of text within one message"""
    type: TextEntityType
    text: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TextEntity":
        entity_type = _enum_value(TextEntityType, _require(data, "type", "text entity"), "text entity")
        text = _require(data, "text", "text entity")
        if not isinstance(text, str):
            raise TranscriptFormatError("text entity: 'text' must be a string")
        return cls(type=entity_type, text=text)


@dataclass(frozen=True)
class Message:
    """A single message of the transcript"""
    id: int
    type: MessageType
    date: datetime
    sender: Optional[str] = None
    text_entities: Tuple[TextEntity, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        """
        Decode one entry of the export's 'messages' array

        Args:
            data: Decoded JSON object of the message

        Returns:
            Message instance

        Raises:
            TranscriptFormatError: If a required field is missing or invalid
        """
        message_id = _require_int(_require(data, "id", "message"), "id", "message")
        where = f"message {message_id}"

        message_type = _enum_value(MessageType, _require(data, "type", where), where)

        raw_date = _require(data, "date", where)
        try:
            date = datetime.fromisoformat(raw_date)
        except (TypeError, ValueError):
            raise TranscriptFormatError(f"{where}: invalid date '{raw_date}'") from None

        sender = data.get("from")
        if sender is not None and not isinstance(sender, str):
            raise TranscriptFormatError(f"{where}: 'from' must be a string or null")

        raw_entities = _require(data, "text_entities", where)
        if not isinstance(raw_entities, list):
            raise TranscriptFormatError(f"{where}: 'text_entities' must be a list")

        return cls(
            id=message_id,
            type=message_type,
            date=date,
            sender=sender,
            text_entities=tuple(TextEntity.from_dict(e) for e in raw_entities),
        )


@dataclass(frozen=True)
class Chat:
    """An exported chat transcript"""
    name: str
    type: ChatType
    id: int
    messages: Tuple[Message, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Chat":
        """Decode a whole Telegram export document"""
        raw_messages = _require(data, "messages", "chat")
        if not isinstance(raw_messages, list):
            raise TranscriptFormatError("chat: 'messages' must be a list")

        name = _require(data, "name", "chat")
        if not isinstance(name, str):
            raise TranscriptFormatError("chat: 'name' must be a string")

        return cls(
            name=name,
            type=_enum_value(ChatType, _require(data, "type", "chat"), "chat"),
            id=_require_int(_require(data, "id", "chat"), "id", "chat"),
            messages=tuple(Message.from_dict(m) for m in raw_messages),
        )

    @classmethod
    def from_json(cls, content: Union[str, bytes]) -> "Chat":
        """Decode a transcript from JSON text, bytes must be UTF-8"""
        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8')
            except UnicodeDecodeError as e:
                raise TranscriptFormatError(f"Transcript is not valid UTF-8: {e}") from e
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise TranscriptFormatError(f"Transcript is not valid JSON: {e}") from e
        return cls.from_dict(data)


@dataclass(frozen=True, eq=False)
class ChatStatistics:
    """
    Final word-frequency report of a chat.

    Never mutated after construction: both maps are copied into read-only
    proxies and num_tokens is derived from tokens_map, it cannot be passed in.
    """
    num_tokens: int = field(init=False)
    members_tokens_map: Mapping[str, Mapping[str, int]]
    tokens_map: Mapping[str, int]

    def __post_init__(self):
        frozen_members = {
            author: MappingProxyType(dict(counts))
            for author, counts in self.members_tokens_map.items()
        }
        tokens_map = MappingProxyType(dict(self.tokens_map))
        object.__setattr__(self, 'members_tokens_map', MappingProxyType(frozen_members))
        object.__setattr__(self, 'tokens_map', tokens_map)
        object.__setattr__(self, 'num_tokens', len(tokens_map))

    @classmethod
    def from_maps(cls, tokens_map: FrequencyMap,
                  members_tokens_map: MembersFrequencyMap) -> "ChatStatistics":
        """
        Package merged frequency maps into a report

        Args:
            tokens_map: Global token -> count map
            members_tokens_map: Author -> (token -> count) map

        Returns:
            ChatStatistics holding its own copies of both maps
        """
        return cls(members_tokens_map=members_tokens_map, tokens_map=tokens_map)

    @classmethod
    def empty(cls) -> "ChatStatistics":
        return cls.from_maps({}, {})

    def to_dict(self) -> dict:
        """Plain-dict form used for JSON encoding and comparisons"""
        return {
            'num_tokens': self.num_tokens,
            'members_tokens_map': {
                author: dict(counts)
                for author, counts in self.members_tokens_map.items()
            },
            'tokens_map': dict(self.tokens_map),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __eq__(self, other):
        if not isinstance(other, ChatStatistics):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None
