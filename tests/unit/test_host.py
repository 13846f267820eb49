"""Unit tests for serdyn.host — NativeHost contexts, builders and kinds."""
from __future__ import annotations

import threading
from typing import Any

import pytest

from serdyn import ContextNotActiveError, encode
from serdyn.host import DynamicKind, HostLimitError, NativeContext, NativeHost, default_host


class TestContextScope:
    def test_active_inside_scope(self, host: NativeHost) -> None:
        with host.acquire() as ctx:
            assert ctx.active

    def test_inactive_after_scope(self, host: NativeHost) -> None:
        with host.acquire() as ctx:
            pass
        assert not ctx.active

    def test_use_after_scope_raises(self, host: NativeHost) -> None:
        with host.acquire() as ctx:
            pass
        with pytest.raises(ContextNotActiveError):
            ctx.integer(1)

    def test_encode_with_stale_context_raises(self, host: NativeHost) -> None:
        with host.acquire() as ctx:
            pass
        with pytest.raises(ContextNotActiveError):
            encode(ctx, 1, int)

    def test_context_not_active_is_runtime_error(self) -> None:
        assert issubclass(ContextNotActiveError, RuntimeError)

    def test_builder_unusable_after_scope(self, host: NativeHost) -> None:
        with host.acquire() as ctx:
            builder = ctx.sequence_builder()
        with pytest.raises(ContextNotActiveError):
            builder.append(1)

    def test_reentrant_acquire(self, host: NativeHost) -> None:
        with host.acquire() as outer:
            with host.acquire() as inner:
                assert inner.active
            assert outer.active
            assert not inner.active

    def test_acquire_is_exclusive_across_threads(self, host: NativeHost) -> None:
        entered = threading.Event()
        order: list[str] = []

        def worker() -> None:
            with host.acquire():
                order.append("worker")
            entered.set()

        with host.acquire():
            thread = threading.Thread(target=worker)
            thread.start()
            assert not entered.wait(0.05)
            order.append("main")
        thread.join(timeout=5)
        assert order == ["main", "worker"]

    def test_default_host_is_shared(self) -> None:
        assert default_host() is default_host()


class TestConstruction:
    def test_scalars(self, ctx: NativeContext) -> None:
        assert ctx.none() is None
        assert ctx.boolean(True) is True
        assert ctx.integer(3) == 3
        assert ctx.floating(1) == 1.0
        assert ctx.text("a") == "a"
        assert ctx.binary(bytearray(b"a")) == b"a"

    def test_containers(self, ctx: NativeContext) -> None:
        assert ctx.new_tuple([1, 2]) == (1, 2)
        assert ctx.new_sequence((1, 2)) == [1, 2]
        assert ctx.new_mapping([("a", 1), ("b", 2)]) == {"a": 1, "b": 2}

    def test_sequence_builder(self, ctx: NativeContext) -> None:
        builder = ctx.sequence_builder()
        builder.append(1)
        builder.append(2)
        assert builder.finish() == [1, 2]

    def test_builder_cannot_append_after_finish(self, ctx: NativeContext) -> None:
        builder = ctx.mapping_builder()
        builder.finish()
        with pytest.raises(RuntimeError, match="already finished"):
            builder.insert("a", 1)

    def test_mapping_builder_unhashable_key(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeError):
            ctx.mapping_builder().insert([1], 1)


class TestHostLimit:
    def test_limit_on_tuple(self) -> None:
        with NativeHost(max_container_len=1).acquire() as ctx:
            with pytest.raises(HostLimitError) as exc_info:
                ctx.new_tuple([1, 2])
        assert exc_info.value.limit == 1
        assert exc_info.value.requested == 2

    def test_limit_on_builder(self) -> None:
        with NativeHost(max_container_len=2).acquire() as ctx:
            builder = ctx.sequence_builder()
            builder.append(1)
            builder.append(2)
            with pytest.raises(HostLimitError):
                builder.append(3)

    def test_repr(self) -> None:
        assert "max_container_len=5" in repr(NativeHost(max_container_len=5))


class TestInspection:
    @pytest.mark.parametrize(
        "obj,kind",
        [
            (None, DynamicKind.ABSENT),
            (False, DynamicKind.BOOL),
            (0, DynamicKind.INT),
            (0.0, DynamicKind.FLOAT),
            ("", DynamicKind.TEXT),
            (b"", DynamicKind.BYTES),
            (bytearray(), DynamicKind.BYTES),
            ([], DynamicKind.SEQUENCE),
            ((), DynamicKind.TUPLE),
            ({}, DynamicKind.MAPPING),
            (object(), DynamicKind.OBJECT),
        ],
    )
    def test_kind_of(self, ctx: NativeContext, obj: Any, kind: DynamicKind) -> None:
        assert ctx.kind_of(obj) is kind

    def test_iteration(self, ctx: NativeContext) -> None:
        assert list(ctx.sequence_items((1, 2))) == [1, 2]
        assert list(ctx.mapping_items({"a": 1})) == [("a", 1)]
        assert ctx.length({"a": 1, "b": 2}) == 2
