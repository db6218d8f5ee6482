"""
Unit tests for MapExecutor
"""

import pytest

from chatstats.common.errors import MissingAuthorError
from chatstats.common.models import MessageType, TextEntityType
from chatstats.worker.map_executor import MapExecutor


class TestMapExecutorCounting:
    """Tests for token counting within a chunk"""

    def test_counts_tokens_globally_and_per_author(self, scenario_chat):
        messages = scenario_chat.messages
        result = MapExecutor(0, messages, 0, len(messages)).execute()

        assert result.tokens_map == {"hello": 2, "world": 2}
        assert result.members_tokens_map == {
            "A": {"hello": 2, "world": 1},
            "B": {"world": 1},
        }
        assert result.messages_processed == 3
        assert result.messages_counted == 3
        assert result.tokens_counted == 4

    def test_counts_every_countable_entity_of_a_message(self, make_message):
        messages = [make_message(
            1, "A",
            (TextEntityType.BOLD, "big"),
            (TextEntityType.ITALIC, "big news"),
            (TextEntityType.HASHTAG, "#news"),
        )]
        result = MapExecutor(0, messages, 0, 1).execute()
        assert result.tokens_map == {"big": 2, "news": 1, "#news": 1}

    def test_skips_service_messages(self, make_message):
        messages = [
            make_message(1, None, "Alice joined", message_type=MessageType.SERVICE),
            make_message(2, "A", "hi"),
        ]
        result = MapExecutor(0, messages, 0, 2).execute()

        assert result.tokens_map == {"hi": 1}
        assert result.messages_processed == 2
        assert result.messages_counted == 1

    def test_skips_meta_entities(self, make_message):
        messages = [make_message(
            1, "A",
            (TextEntityType.PHONE, "+1 555 0100"),
            (TextEntityType.MENTION, "@bob"),
            (TextEntityType.EMAIL, "bob@example.com"),
            (TextEntityType.BOT_COMMAND, "/start"),
            (TextEntityType.CUSTOM_EMOJI, "party"),
        )]
        result = MapExecutor(0, messages, 0, 1).execute()

        assert result.tokens_map == {}
        assert result.members_tokens_map == {}
        assert result.messages_counted == 1

    def test_emoji_only_message_creates_no_author_entry(self, make_message):
        result = MapExecutor(0, [make_message(1, "A", "😀 🔥")], 0, 1).execute()
        assert result.members_tokens_map == {}

    def test_only_reads_its_own_range(self, make_message):
        messages = [make_message(i, "A", f"word{i}") for i in range(6)]
        result = MapExecutor(3, messages, 2, 4).execute()

        assert result.task_id == 3
        assert result.tokens_map == {"word2": 1, "word3": 1}
        assert result.messages_processed == 2

    def test_empty_range(self, make_message):
        messages = [make_message(1, "A", "hi")]
        result = MapExecutor(0, messages, 1, 1).execute()
        assert result.tokens_map == {}
        assert result.messages_processed == 0

    def test_results_do_not_share_maps(self, scenario_chat):
        messages = scenario_chat.messages
        first = MapExecutor(0, messages, 0, 3).execute()
        second = MapExecutor(1, messages, 0, 3).execute()

        assert first.tokens_map == second.tokens_map
        assert first.tokens_map is not second.tokens_map
        assert first.members_tokens_map["A"] is not second.members_tokens_map["A"]


class TestMapExecutorErrors:
    """Tests for input-validity failures"""

    def test_regular_message_without_author_fails(self, make_message):
        messages = [make_message(1, "A", "hi"), make_message(7, None, "orphan")]

        with pytest.raises(MissingAuthorError) as excinfo:
            MapExecutor(0, messages, 0, 2).execute()
        assert excinfo.value.message_id == 7

    def test_authorless_service_message_is_fine(self, make_message):
        messages = [make_message(1, None, "pinned", message_type=MessageType.SERVICE)]
        result = MapExecutor(0, messages, 0, 1).execute()
        assert result.messages_counted == 0
