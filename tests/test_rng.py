from minnownet.rng import get_random_engine


def test_engines_are_independent():
    first = get_random_engine()
    second = get_random_engine()
    state = second.getstate()
    values_first = [first.getrandbits(32) for _ in range(8)]
    assert second.getstate() == state
    values_second = [second.getrandbits(32) for _ in range(8)]
    assert values_first != values_second
    assert all(0 <= v < 2**32 for v in values_first + values_second)


def test_engine_is_deterministic_from_state():
    engine = get_random_engine()
    state = engine.getstate()
    draws = [engine.getrandbits(16) for _ in range(16)]
    engine.setstate(state)
    assert [engine.getrandbits(16) for _ in range(16)] == draws
    assert all(0 <= v < 65536 for v in draws)