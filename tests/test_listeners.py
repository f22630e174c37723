"""Tests for ListenerRegistry."""

import pytest

from minirex import ListenerRegistry


class TestListenerRegistry:
    def test_notify_in_registration_order(self):
        registry = ListenerRegistry()
        log = []
        registry.add(lambda: log.append(1))
        registry.add(lambda: log.append(2))
        registry.add(lambda: log.append(3))
        registry.notify()
        assert log == [1, 2, 3]

    def test_snapshot_is_not_mutated_by_later_changes(self):
        registry = ListenerRegistry()
        a, b = (lambda: None), (lambda: None)
        registry.add(a)
        snapshot = registry.snapshot()
        registry.add(b)
        registry.remove(a)
        assert snapshot == [a]
        assert registry.snapshot() == [b]

    def test_staging_aliases_active_until_mutation(self):
        registry = ListenerRegistry()
        registry.add(lambda: None)
        first = registry.snapshot()
        assert registry.snapshot() is first
        registry.add(lambda: None)
        assert registry.snapshot() is not first

    def test_remove_during_notify_does_not_skip(self):
        registry = ListenerRegistry()
        log = []

        def first():
            log.append("first")
            registry.remove(first)

        registry.add(first)
        registry.add(lambda: log.append("second"))
        registry.notify()
        assert log == ["first", "second"]
        registry.notify()
        assert log == ["first", "second", "second"]

    def test_add_during_notify_waits_for_next_pass(self):
        registry = ListenerRegistry()
        log = []

        def adder():
            log.append("adder")
            registry.add(lambda: log.append("late"))

        registry.add(adder)
        registry.notify()
        assert log == ["adder"]
        registry.notify()
        assert log == ["adder", "adder", "late"]

    def test_remove_only_first_occurrence(self):
        registry = ListenerRegistry()
        log = []

        def listener():
            log.append(1)

        registry.add(listener)
        registry.add(listener)
        registry.remove(listener)
        assert len(registry) == 1
        registry.notify()
        assert log == [1]

    def test_exception_stops_the_pass(self):
        registry = ListenerRegistry()
        log = []

        def boom():
            raise RuntimeError("boom")

        registry.add(boom)
        registry.add(lambda: log.append("never"))
        with pytest.raises(RuntimeError):
            registry.notify()
        assert log == []
