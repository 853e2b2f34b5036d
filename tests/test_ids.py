"""Тесты генератора ID."""

import pytest

from tag_hierarchy.core.ids import (
    EPOCH_MS,
    MAX_SEQUENCE,
    MAX_WORKER_ID,
    SEQUENCE_BITS,
    IdGenerator,
    SnowflakeIdGenerator,
)


class FrozenClock:
    """Часы, которые двигаются только вручную."""

    def __init__(self, ms: int):
        self.ms = ms

    def __call__(self) -> float:
        return self.ms / 1000


@pytest.fixture
def clock():
    return FrozenClock(EPOCH_MS + 1_000)


def test_ids_are_numeric_strings(clock):
    generator = SnowflakeIdGenerator(worker_id=7, clock=clock)

    value = generator()

    assert isinstance(value, str)
    assert value.isdigit()
    assert len(value) <= 20
    assert (int(value) >> SEQUENCE_BITS) & MAX_WORKER_ID == 7


def test_unique_within_one_millisecond(clock):
    """Test: больше MAX_SEQUENCE ID в одну мс - всё равно уникальны."""
    generator = SnowflakeIdGenerator(clock=clock)

    ids = [int(generator()) for _ in range(MAX_SEQUENCE * 2 + 10)]

    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)


def test_monotonic_when_clock_goes_back(clock):
    generator = SnowflakeIdGenerator(clock=clock)

    first = int(generator())
    clock.ms -= 500
    second = int(generator())
    clock.ms += 2_000
    third = int(generator())

    assert first < second < third


def test_different_workers_do_not_collide(clock):
    a = SnowflakeIdGenerator(worker_id=1, clock=clock)
    b = SnowflakeIdGenerator(worker_id=2, clock=clock)

    assert {a() for _ in range(100)}.isdisjoint({b() for _ in range(100)})


@pytest.mark.parametrize("worker_id", [-1, MAX_WORKER_ID + 1])
def test_worker_id_out_of_range(worker_id):
    with pytest.raises(ValueError):
        SnowflakeIdGenerator(worker_id=worker_id)


def test_generators_satisfy_protocol(id_generator):
    assert isinstance(SnowflakeIdGenerator(), IdGenerator)
    assert isinstance(id_generator, IdGenerator)
    assert [id_generator(), id_generator()] == ["1", "2"]
