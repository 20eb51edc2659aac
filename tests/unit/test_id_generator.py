"""Tests for cs_common.id_generator and cs_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.cs_common.datetime_utils import from_epoch_seconds, to_epoch_seconds, utc_now
from src.cs_common.id_generator import SnowflakeIdGenerator, derive_content_id


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        assert isinstance(SnowflakeIdGenerator(machine_id=1).next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_clock_going_backwards_keeps_increasing(self) -> None:
        gen = SnowflakeIdGenerator()
        first = int(gen.next_id())
        gen._current_ms = lambda: gen._last_timestamp_ms - 5000  # type: ignore[method-assign]
        assert int(gen.next_id()) > first

    def test_machine_id_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)


class TestDeriveContentId:
    def test_deterministic(self) -> None:
        assert derive_content_id(["a", "b"]) == derive_content_id(["a", "b"])

    def test_part_boundaries_matter(self) -> None:
        assert derive_content_id(["ab", "c"]) != derive_content_id(["a", "bc"])

    def test_format(self) -> None:
        cid = derive_content_id(["x"])
        assert cid.startswith("0x")
        assert len(cid) == 66


class TestUtcNow:
    def test_returns_aware_utc(self) -> None:
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)


class TestEpochSeconds:
    def test_round_trip(self) -> None:
        dt = datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
        assert from_epoch_seconds(to_epoch_seconds(dt)) == dt

    def test_naive_treated_as_utc(self) -> None:
        naive = datetime(2026, 3, 1, 8, 30)
        assert to_epoch_seconds(naive) == to_epoch_seconds(naive.replace(tzinfo=UTC))

    def test_offset_respected(self) -> None:
        plus_two = datetime(2026, 3, 1, 10, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_epoch_seconds(plus_two) == to_epoch_seconds(datetime(2026, 3, 1, 8, 30, tzinfo=UTC))
