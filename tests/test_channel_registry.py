from __future__ import annotations

from serialplot.core.channel_registry import ChannelRegistry


def test_ensure_assigns_indices_in_first_seen_order() -> None:
    registry = ChannelRegistry()
    assert registry.ensure("b") == 0
    assert registry.ensure("a") == 1
    assert registry.ensure("b") == 0
    assert registry.ensure("c") == 2
    assert registry.names() == ["b", "a", "c"]
    assert len(registry) == 3
    assert "a" in registry
    assert "z" not in registry
    assert registry.index_of("c") == 2
    assert registry.index_of("z") is None
    assert registry.name_of(1) == "a"
    assert list(registry) == ["b", "a", "c"]


def test_new_channel_callback_fires_once_per_name() -> None:
    seen: list[tuple[str, int]] = []
    registry = ChannelRegistry(on_new_channel=lambda name, idx: seen.append((name, idx)))
    for name in ["x", "y", "x", "x", "z", "y"]:
        registry.ensure(name)
    assert seen == [("x", 0), ("y", 1), ("z", 2)]


def test_failing_callback_does_not_corrupt_registry(caplog) -> None:
    def _boom(name: str, index: int) -> None:
        raise RuntimeError("chart not ready")

    registry = ChannelRegistry(on_new_channel=_boom)
    assert registry.ensure("x") == 0
    assert registry.ensure("y") == 1
    assert registry.names() == ["x", "y"]
    assert "Error in new-channel callback" in caplog.text


def test_names_returns_a_copy() -> None:
    registry = ChannelRegistry()
    registry.ensure("a")
    names = registry.names()
    names.append("b")
    assert registry.names() == ["a"]
