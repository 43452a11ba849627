import json
import os
import tempfile
from typing import Any

import pytest

from chatspan.chatspan_context import (
    ContextConfigError,
    ContextHandle,
    ParserContext,
    load_context_values,
)
from chatspan.chatspan_parser import parse_message


def write_json(data: Any) -> str:
    fd, path = tempfile.mkstemp(suffix=".json")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return path


def test_context_builds_indexes() -> None:
    ctx = ParserContext(
        emotes=["PEPE"], emote_modifiers=["wide"], nicks=["abeous"], tags=["nsfw"]
    )
    assert ctx.emotes.contains("PEPE")
    assert ctx.emote_modifiers.contains("wide")
    assert ctx.nicks.contains("ABEOUS")
    assert ctx.tags.contains("nsfw")
    assert repr(ctx) == "ParserContext(emotes=1, emote_modifiers=1, nicks=1, tags=1)"


def test_empty_context() -> None:
    ctx = ParserContext()
    assert len(ctx.emotes) == 0
    assert not ctx.nicks.contains("anyone")


def test_from_values_missing_keys() -> None:
    ctx = ParserContext.from_values({"emotes": ["PEPE"]})
    assert ctx.emotes.contains("PEPE")
    assert len(ctx.tags) == 0


def test_values_round_trip_keeps_meta() -> None:
    ctx = ParserContext(emotes=["b", "a"], nicks=[("Abeous", 7), "wrxst"])
    values = ctx.values()
    assert values["emotes"] == ["a", "b"]
    assert values["nicks"] == [("Abeous", 7), "wrxst"]


def test_with_values_is_copy_on_write() -> None:
    ctx = ParserContext(emotes=["PEPE"], tags=["nsfw"])
    updated = ctx.with_values(emotes=["PEPE", "CuckCrab"])
    assert updated is not ctx
    assert updated.emotes.contains("CuckCrab")
    assert updated.tags.contains("nsfw")
    assert not ctx.emotes.contains("CuckCrab")


def test_with_values_unknown_name_raises() -> None:
    with pytest.raises(TypeError, match="Unknown vocabulary"):
        ParserContext().with_values(smileys=["x"])


def test_handle_swap_returns_previous() -> None:
    first = ParserContext(emotes=["PEPE"])
    second = ParserContext(emotes=["CuckCrab"])
    handle = ContextHandle(first)
    assert handle.get() is first
    assert handle.swap(second) is first
    assert handle.get() is second


def test_handle_default_context_is_empty() -> None:
    handle = ContextHandle()
    assert len(handle.get().emotes) == 0


def test_handle_update_publishes_new_snapshot() -> None:
    handle = ContextHandle(ParserContext(emotes=["PEPE"]))
    old = handle.get()
    new = handle.update(tags=["nsfw"])
    assert handle.get() is new
    assert new.tags.contains("nsfw")
    assert not old.tags.contains("nsfw")


def test_parse_with_handle_uses_current_snapshot() -> None:
    handle = ContextHandle(ParserContext())
    assert parse_message("PEPE", handle).children == []
    handle.swap(ParserContext(emotes=["PEPE"]))
    assert len(parse_message("PEPE", handle).children) == 1


def test_load_context_values() -> None:
    path = write_json(
        {
            "emotes": ["PEPE"],
            "emote_modifiers": ["wide"],
            "nicks": ["abeous", {"nick": "wrxst", "meta": {"flair": "sub"}}],
            "tags": ["nsfw"],
        }
    )
    try:
        values = load_context_values(path)
        ctx = ParserContext.from_json(path)
    finally:
        os.remove(path)
    assert values["nicks"] == ["abeous", ("wrxst", {"flair": "sub"})]
    entry = ctx.nicks.lookup("WRXST")
    assert entry is not None and entry.meta == {"flair": "sub"}


def test_load_missing_file_raises() -> None:
    with pytest.raises(ContextConfigError, match="Failed to load"):
        load_context_values("/nonexistent/vocab.json")


def test_load_invalid_json_raises() -> None:
    fd, path = tempfile.mkstemp(suffix=".json")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write("{not json")
    try:
        with pytest.raises(ContextConfigError) as e:
            load_context_values(path)
    finally:
        os.remove(path)
    assert isinstance(e.value.__cause__, ValueError)


def test_load_non_object_raises() -> None:
    path = write_json(["PEPE"])
    try:
        with pytest.raises(ContextConfigError, match="must be a JSON object"):
            load_context_values(path)
    finally:
        os.remove(path)


def test_load_reports_all_problems() -> None:
    path = write_json({"emotes": "PEPE", "smileys": []})
    try:
        with pytest.raises(ContextConfigError) as e:
            load_context_values(path)
    finally:
        os.remove(path)
    assert "Invalid vocabulary snapshot" in str(e.value)
    assert len(e.value.problems) == 2
    assert any("'emotes' must be a list" in p for p in e.value.problems)
    assert any("unknown key 'smileys'" in p for p in e.value.problems)


def test_load_accepts_odd_entries() -> None:
    path = write_json({"emotes": ["", "PEPE", "PEPE"]})
    try:
        ctx = ParserContext.from_json(path)
    finally:
        os.remove(path)
    assert len(ctx.emotes) == 2
