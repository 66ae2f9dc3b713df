"""Unit tests for storage key generation."""

from feed_importer.storage import UniqueClock, make_key


class TestMakeKey:
    """Tests for make_key."""

    def test_key_format(self) -> None:
        """Test key is namespace/owner/milliseconds.extension."""
        key = make_key(7, "mp3", clock=lambda: 1700000000.123)

        assert key == "protected/7/1700000000123.mp3"

    def test_custom_namespace(self) -> None:
        """Test namespace prefix is configurable."""
        key = make_key(7, "mp3", namespace="staging", clock=lambda: 1.0)

        assert key == "staging/7/1000.mp3"

    def test_extension_leading_dot_ignored(self) -> None:
        """Test '.mp3' and 'mp3' give the same key."""
        assert make_key(7, ".mp3", clock=lambda: 1.0) == make_key(7, "mp3", clock=lambda: 1.0)

    def test_increasing_clock_never_collides(self) -> None:
        """Test 1000 calls with a strictly increasing clock give distinct keys."""
        ticks = iter(1700000000 + i / 1000 for i in range(1000))

        keys = [make_key(7, "mp3", clock=lambda: next(ticks)) for _ in range(1000)]

        assert len(set(keys)) == 1000

    def test_owner_in_key(self) -> None:
        """Test different owners never share a key."""
        assert make_key(7, "mp3", clock=lambda: 1.0) != make_key(8, "mp3", clock=lambda: 1.0)


class TestUniqueClock:
    """Tests for UniqueClock."""

    def test_follows_wall_clock(self) -> None:
        """Test values from a moving clock pass through unchanged."""
        ticks = iter([10.0, 11.5])
        clock = UniqueClock(lambda: next(ticks))

        assert clock() == 10.0
        assert clock() == 11.5

    def test_frozen_clock_still_unique(self) -> None:
        """Test calls within the same millisecond get distinct keys."""
        clock = UniqueClock(lambda: 1700000000.0)

        keys = [make_key(7, "mp3", clock=clock) for _ in range(3)]

        assert keys == [
            "protected/7/1700000000000.mp3",
            "protected/7/1700000000001.mp3",
            "protected/7/1700000000002.mp3",
        ]

    def test_clock_going_backwards(self) -> None:
        """Test a clock stepping back never repeats an earlier value."""
        ticks = iter([5.0, 4.0, 4.0])
        clock = UniqueClock(lambda: next(ticks))

        values = [round(clock() * 1000) for _ in range(3)]

        assert values == [5000, 5001, 5002]
