"""
Unit tests for comment parsing and protocol enums.
"""

import lxml.etree as ET
import pytest
from pydantic import ValidationError

from nicolive_comment_client.constants import (
    AccountType,
    ChatResultStatus,
    LiveSession,
    NicoLiveComment,
)


EXAMPLE_CHAT = '<chat thread="1" vpos="12" date="1600000000" user_id="123" premium="0">hello &gt; world</chat>'


class TestNicoLiveComment:
    """Tests for NicoLiveComment.fromRawXML."""

    def test_parse_example_fragment(self):
        comment = NicoLiveComment.fromRawXML(EXAMPLE_CHAT, 123)

        assert comment.content == 'hello > world'
        assert comment.is_my_post is True
        assert comment.isPostBySelf() is True
        assert comment.user.id == 123
        assert isinstance(comment.user.id, int)
        assert comment.user.is_premium is False
        assert comment.thread_id == '1'
        assert comment.vpos == 12

    def test_timestamp_is_milliseconds(self):
        comment = NicoLiveComment.fromRawXML(
            '<chat thread="1" date="1600000000" date_usec="250000" user_id="1">a</chat>')

        assert comment.timestamp == 1600000000 * 1000
        assert comment.date.timestamp() == pytest.approx(1600000000.25)

    def test_double_escaped_angle_brackets_decode_once(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1">&amp;lt;b&amp;gt; &amp;amp;</chat>')

        assert comment.content == '<b> &amp;'

    def test_other_text_is_untouched(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1">ｗｗｗ 184 /gt lt;</chat>')

        assert comment.content == 'ｗｗｗ 184 /gt lt;'

    def test_yourpost_marks_self_post(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="999" yourpost="1">a</chat>', 123)

        assert comment.isPostBySelf() is True

    def test_other_user_is_not_self_post(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="999">a</chat>', 123)

        assert comment.isPostBySelf() is False

    def test_anonymous_user_id_stays_string(self):
        comment = NicoLiveComment.fromRawXML(
            '<chat thread="1" user_id="abc123xyz" anonymity="1" mail="184">a</chat>', 123)

        assert comment.user.id == 'abc123xyz'
        assert comment.isPostByAnonymous() is True
        assert comment.isPostBySelf() is False
        assert comment.command == '184'

    def test_numeric_user_id(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="12345">a</chat>')

        assert comment.user.id == 12345

    def test_premium_flag_follows_account_type(self):
        general = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="0">a</chat>')
        premium = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="1">a</chat>')

        assert general.user.account_type == AccountType.GENERAL
        assert general.isPostByPremiumUser() is False
        assert premium.user.account_type == AccountType.PREMIUM
        assert premium.isPostByPremiumUser() is True

    def test_account_type_is_enum(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="3">a</chat>')

        assert comment.user.account_type is AccountType.DISTRIBUTOR

    def test_unknown_account_type_stays_int(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="7">a</chat>')

        assert comment.user.account_type == 7
        assert not isinstance(comment.user.account_type, AccountType)
        assert comment.isPostByPremiumUser() is True

    def test_distributor_comment(self):
        comment = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="3">/disconnect</chat>')

        assert comment.isPostByDistributor() is True
        assert comment.isControlComment() is False
        assert comment.isNormalComment() is True

    def test_control_comments(self):
        system = NicoLiveComment.fromRawXML('<chat thread="1" user_id="900000000">/info 1</chat>')
        admin = NicoLiveComment.fromRawXML('<chat thread="1" user_id="1" premium="6">/hb</chat>')

        assert system.isControlComment() is True
        assert admin.isControlComment() is True
        assert admin.isNormalComment() is True

    def test_accepts_parsed_element(self):
        element = ET.fromstring(EXAMPLE_CHAT)
        comment = NicoLiveComment.fromRawXML(element)

        assert comment.content == 'hello > world'
        assert comment.is_my_post is False

    def test_missing_attributes_default(self):
        comment = NicoLiveComment.fromRawXML('<chat>a</chat>')

        assert comment.no == 0
        assert comment.vpos == 0
        assert comment.locale is None
        assert comment.user.score == 0
        assert comment.user.is_anonymous is False

    def test_rejects_non_chat_element(self):
        with pytest.raises(ValueError):
            NicoLiveComment.fromRawXML('<thread thread="1"/>')

    def test_comment_is_immutable(self):
        comment = NicoLiveComment.fromRawXML(EXAMPLE_CHAT)

        with pytest.raises(ValidationError):
            comment.content = 'changed'  # type: ignore[misc]


class TestChatResultStatus:

    def test_known_statuses(self):
        assert ChatResultStatus(0) is ChatResultStatus.SUCCESS
        assert ChatResultStatus(2) is ChatResultStatus.THREAD_ID_ERROR
        assert ChatResultStatus(5) is ChatResultStatus.LOCKED

    def test_different_postkey_alias(self):
        assert ChatResultStatus(4) is ChatResultStatus.DIFFERENT_POSTKEY
        assert ChatResultStatus(8) is ChatResultStatus.DIFFERENT_POSTKEY

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            ChatResultStatus(99)


class TestLiveSession:

    def test_refresh_thread(self):
        session = LiveSession(nicolive_program_id='lv1', addr='127.0.0.1', port=2805, thread='1', user_id=1)
        session.refreshThread('2')

        assert session.thread == '2'
        assert session.cookies == {}
