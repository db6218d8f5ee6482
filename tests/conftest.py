"""
Pytest configuration and shared fixtures
"""

import json
import os
import shutil
import tempfile
from datetime import datetime, timedelta

import pytest

from chatstats.common.models import (
    Chat,
    ChatType,
    Message,
    MessageType,
    TextEntity,
    TextEntityType,
)
from chatstats.tools.generate_transcript import generate_chat

BASE_DATE = datetime(2023, 5, 6, 18, 58, 54)


def build_message(message_id, sender, *entities, message_type=MessageType.MESSAGE):
    """Build a Message; entities are (TextEntityType, text) pairs or plain strings"""
    text_entities = []
    for entity in entities:
        if isinstance(entity, str):
            entity = (TextEntityType.PLAIN, entity)
        text_entities.append(TextEntity(type=entity[0], text=entity[1]))
    return Message(
        id=message_id,
        type=message_type,
        date=BASE_DATE + timedelta(minutes=message_id),
        sender=sender,
        text_entities=tuple(text_entities),
    )


def build_chat(messages, name="Test chat"):
    return Chat(name=name, type=ChatType.PRIVATE_SUPERGROUP, id=42, messages=tuple(messages))


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def make_message():
    """Factory for Message objects"""
    return build_message


@pytest.fixture
def make_chat():
    """Factory for Chat objects"""
    return build_chat


@pytest.fixture
def scenario_chat():
    """Two authors: A says 'hello world' and 'hello!', B says 'world'"""
    return build_chat([
        build_message(1, "A", "hello world"),
        build_message(2, "A", "hello!"),
        build_message(3, "B", "world"),
    ])


@pytest.fixture
def synthetic_chat():
    """Larger deterministic transcript with emoji, meta entities and service messages"""
    return Chat.from_dict(generate_chat(240, num_authors=5, seed=7, service_ratio=0.05))


@pytest.fixture
def sample_export():
    """Telegram export document as decoded from JSON"""
    return {
        "name": "Weekend plans",
        "type": "private_supergroup",
        "id": 1234567890,
        "messages": [
            {
                "id": 1,
                "type": "service",
                "date": "2023-05-06T18:00:00",
                "actor": "Alice",
                "action": "create_group",
                "title": "Weekend plans",
                "text": "",
                "text_entities": []
            },
            {
                "id": 2,
                "type": "message",
                "date": "2023-05-06T18:01:00",
                "from": "Alice",
                "from_id": "user1",
                "text": "Hello everyone😀 call me +1 555 0100",
                "text_entities": [
                    {"type": "plain", "text": "Hello everyone😀 call me "},
                    {"type": "phone", "text": "+1 555 0100"}
                ]
            },
            {
                "id": 3,
                "type": "message",
                "date": "2023-05-06T18:02:30",
                "from": "Bob",
                "from_id": "user2",
                "text": "hello @alice, café?",
                "text_entities": [
                    {"type": "plain", "text": "hello "},
                    {"type": "mention", "text": "@alice"},
                    {"type": "bold", "text": ", café?"}
                ]
            },
            {
                "id": 4,
                "type": "message",
                "date": "2023-05-06T18:03:00",
                "from": "Alice",
                "from_id": "user1",
                "text": "Link: example.org",
                "text_entities": [
                    {"type": "plain", "text": "Link: "},
                    {"type": "link", "text": "example.org", "href": "https://example.org"}
                ]
            }
        ]
    }


@pytest.fixture
def sample_export_file(temp_dir, sample_export):
    """Write the sample export to disk"""
    filepath = os.path.join(temp_dir, 'result.json')
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(sample_export, f, ensure_ascii=False)
    return filepath
