from __future__ import annotations

import json
import logging
from types import MappingProxyType

from bot.identity import assignee_mention, is_same_user, load_user_mapping, resolve
from bot.models import ChatUser, IdName, TrackerUser, UserDirectory

JANE = TrackerUser(id=1, login="jdoe", firstname="Jane", lastname="Doe")
TARO = TrackerUser(id=2, login="taro", firstname="太郎", lastname="山田")


def test_resolve_matches_login_regardless_of_real_name() -> None:
    chat_users = [
        ChatUser(id="U0", name="someone", real_name="Some One"),
        ChatUser(id="U1", name="jdoe", real_name="X Y"),
    ]
    assert resolve(JANE, chat_users) == "<@U1>"


def test_resolve_normalizes_fullwidth_space_in_real_name() -> None:
    chat_users = [ChatUser(id="U2", name="yamada", real_name="山田　太郎")]
    assert resolve(TARO, chat_users) == "<@U2>"


def test_resolve_accepts_every_name_ordering() -> None:
    for real_name in ("DoeJane", "Doe Jane", "JaneDoe", "Jane Doe"):
        chat_users = [ChatUser(id="U3", name="other", real_name=real_name)]
        assert resolve(JANE, chat_users) == "<@U3>", real_name


def test_resolve_first_match_wins() -> None:
    chat_users = [
        ChatUser(id="UA", name="a", real_name="Jane Doe"),
        ChatUser(id="UB", name="jdoe", real_name=""),
    ]
    assert resolve(JANE, chat_users) == "<@UA>"


def test_resolve_after_single_mapping_substitution() -> None:
    tracker_user = TrackerUser(id=3, login="yamada_t", firstname="T.", lastname="Yamada")
    chat_users = [ChatUser(id="U4", name="tyamada", real_name="Taro Yamada")]
    mapping = {"Taro Yamada": "yamada_t"}

    assert resolve(tracker_user, chat_users) is None
    assert resolve(tracker_user, chat_users, mapping) == "<@U4>"


def test_mapping_value_can_be_a_full_name() -> None:
    chat_users = [ChatUser(id="U5", name="hs", real_name="Hanako S.")]
    tracker_user = TrackerUser(id=4, login="hanako", firstname="花子", lastname="鈴木")
    mapping = {"Hanako S.": "鈴木 花子"}
    assert resolve(tracker_user, chat_users, mapping) == "<@U5>"


def test_mapping_is_keyed_by_real_name_only() -> None:
    chat_users = [
        ChatUser(id="UWRONG", name="taro", real_name="Taro Suzuki"),
        ChatUser(id="URIGHT", name="jd", real_name="taro"),
    ]
    assert resolve(JANE, chat_users, {"taro": "Jane Doe"}) == "<@URIGHT>"


def test_mapping_substitution_is_not_chained() -> None:
    chat_user = ChatUser(id="U7", name="x", real_name="Alias One")
    mapping = {"Alias One": "Alias Two", "Alias Two": "Jane Doe"}
    assert not is_same_user(JANE, chat_user, mapping)


def test_resolve_does_not_mutate_chat_users() -> None:
    chat_user = ChatUser(id="U4", name="tyamada", real_name="Taro Yamada")
    resolve(TARO, [chat_user], {"Taro Yamada": "山田 太郎"})
    assert chat_user.real_name == "Taro Yamada"


def test_resolve_is_deterministic() -> None:
    chat_users = [
        ChatUser(id="U8", name="a", real_name="Doe Jane"),
        ChatUser(id="U9", name="jdoe", real_name=""),
    ]
    mapping = MappingProxyType({"Doe Jane": "whoever"})
    results = {resolve(JANE, chat_users, mapping) for _ in range(5)}
    assert results == {"<@U8>"}


def test_empty_names_never_match() -> None:
    blank = TrackerUser(id=9, login="", firstname="", lastname="")
    assert resolve(blank, [ChatUser(id="U0", name="", real_name="")]) is None


def test_assignee_mention_unassigned_short_circuits() -> None:
    directory = UserDirectory([])
    assert assignee_mention(None, directory, []) == ""


def test_assignee_mention_unknown_user_falls_back_to_name(caplog) -> None:
    directory = UserDirectory([JANE])
    with caplog.at_level(logging.WARNING, logger="bot.identity"):
        result = assignee_mention(IdName(id=42, name="Ghost User"), directory, [])
    assert result == "Ghost User"
    assert "42" in caplog.text


def test_assignee_mention_unmatched_user_falls_back_to_name() -> None:
    directory = UserDirectory([JANE])
    chat_users = [ChatUser(id="U1", name="nobody", real_name="No Body")]
    assert assignee_mention(IdName(id=1, name="Jane Doe"), directory, chat_users) == "Jane Doe"


def test_assignee_mention_resolves_handle() -> None:
    directory = UserDirectory([JANE, TARO])
    chat_users = [ChatUser(id="U2", name="yamada", real_name="山田　太郎")]
    assert assignee_mention(IdName(id=2, name="山田 太郎"), directory, chat_users) == "<@U2>"


def test_load_user_mapping_reads_json(tmp_path) -> None:
    path = tmp_path / "usermapping.json"
    path.write_text(json.dumps({"Taro Yamada": "yamada_t", "bad": 3}), encoding="utf-8")

    mapping = load_user_mapping(path)

    assert dict(mapping) == {"Taro Yamada": "yamada_t"}


def test_load_user_mapping_missing_file_is_empty(tmp_path) -> None:
    assert dict(load_user_mapping(tmp_path / "absent.json")) == {}


def test_load_user_mapping_malformed_file_is_empty(tmp_path, caplog) -> None:
    path = tmp_path / "usermapping.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="bot.identity"):
        assert dict(load_user_mapping(path)) == {}
    assert "malformed" in caplog.text


def test_load_user_mapping_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "usermapping.json"
    path.write_text('["a", "b"]', encoding="utf-8")
    assert dict(load_user_mapping(path)) == {}
