"""Tests for the shared connection registry."""

import asyncio

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tcp_registry.errors import IndexOutOfRange
from tcp_registry.tables import ConnectionRegistry

from tests.helpers import filled_registry, make_entry


class TestInsertAndList:
    """Insertion order and positional listing."""

    @pytest.mark.anyio
    async def test_insert_returns_length_before_insert(self):
        """Each insert reports the position it was appended at."""
        registry = ConnectionRegistry()

        positions = [await registry.insert(make_entry(port)) for port in (5000, 5001, 5002)]

        assert positions == [0, 1, 2]
        assert len(registry) == 3

    @pytest.mark.anyio
    async def test_list_is_empty_for_new_registry(self):
        """A fresh registry lists nothing."""
        assert await ConnectionRegistry().list() == []

    @given(ports=st.lists(st.integers(min_value=1, max_value=65535), max_size=20))
    def test_list_preserves_insertion_order(self, ports):
        """For any sequence of inserts, list() returns them in insertion order."""

        async def scenario():
            registry = await filled_registry(*(make_entry(port) for port in ports))
            return await registry.list()

        rows = asyncio.run(scenario())

        assert rows == [(i, ("127.0.0.1", port)) for i, port in enumerate(ports)]


class TestRemoveWhere:
    """Filtering removal, position shifting and socket cleanup."""

    @pytest.mark.anyio
    async def test_removal_shifts_later_positions_down(self):
        """Removing position 0 moves every later entry down by one."""
        a, b, c = make_entry(1), make_entry(2), make_entry(3)
        registry = await filled_registry(a, b, c)

        removed = await registry.remove_where(lambda entry: entry is not a)

        assert removed == 1
        assert await registry.list() == [(0, b.address), (1, c.address)]

    @pytest.mark.anyio
    async def test_survivors_keep_relative_order(self):
        """Removing from the middle keeps the remaining entries in order."""
        entries = [make_entry(port) for port in range(10, 16)]
        registry = await filled_registry(*entries)

        await registry.remove_where(lambda entry: entry.address[1] % 2 == 0)

        assert [address[1] for _, address in await registry.list()] == [10, 12, 14]

    @pytest.mark.anyio
    async def test_removed_entries_are_closed(self):
        """Dropping an entry closes its socket; survivors stay open."""
        keep, drop = make_entry(1), make_entry(2)
        registry = await filled_registry(keep, drop)

        await registry.remove_where(lambda entry: entry is keep)

        drop.sock.close.assert_called_once()
        keep.sock.close.assert_not_called()

    @pytest.mark.anyio
    async def test_remove_nothing(self):
        """A predicate that keeps everything removes nothing."""
        registry = await filled_registry(make_entry(1), make_entry(2))

        assert await registry.remove_where(lambda entry: True) == 0
        assert len(registry) == 2

    @pytest.mark.anyio
    async def test_close_all(self):
        """close_all empties the registry and closes every socket."""
        entries = [make_entry(1), make_entry(2)]
        registry = await filled_registry(*entries)

        assert await registry.close_all() == 2
        assert len(registry) == 0
        for entry in entries:
            entry.sock.close.assert_called_once()


class TestLookup:
    """Lookup by address and by position."""

    @pytest.mark.anyio
    async def test_find_by_address(self):
        """An entry is found by its remote address."""
        a, b = make_entry(1), make_entry(2)
        registry = await filled_registry(a, b)

        assert await registry.find_by_address(("127.0.0.1", 2)) is b

    @pytest.mark.anyio
    async def test_find_missing_address_returns_none(self):
        """An unknown address is not an error."""
        registry = await filled_registry(make_entry(1))

        assert await registry.find_by_address(("10.0.0.1", 1)) is None

    @pytest.mark.anyio
    async def test_address_at(self):
        """address_at resolves a current position."""
        registry = await filled_registry(make_entry(1), make_entry(2))

        assert await registry.address_at(1) == ("127.0.0.1", 2)

    @pytest.mark.anyio
    @pytest.mark.parametrize("position", [2, 99, -1])
    async def test_address_at_out_of_range(self, position):
        """Positions outside the table raise IndexOutOfRange."""
        registry = await filled_registry(make_entry(1), make_entry(2))

        with pytest.raises(IndexOutOfRange) as excinfo:
            await registry.address_at(position)

        assert excinfo.value.index == position
        assert excinfo.value.size == 2
