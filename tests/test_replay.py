import threading

from debug_gate.replay import DEFAULT_MAX_SKEW_MS, Freshness, ReplayGuard

from conftest import NOW_MS, Clock


def test_default_skew_is_ten_seconds():
    assert DEFAULT_MAX_SKEW_MS == 10000
    assert ReplayGuard().max_skew_ms == 10000


def test_accept_advances_high_water_mark():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    assert guard.last_accepted == 0
    assert guard.accept(5)
    assert guard.last_accepted == 5
    assert guard.accept(6)
    assert guard.last_accepted == 6


def test_equal_or_lower_counter_is_stale():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    assert guard.accept(100)
    assert guard.check(100) is Freshness.STALE
    assert guard.check(99) is Freshness.STALE
    assert not guard.accept(100)
    assert not guard.accept(50)
    assert guard.last_accepted == 100


def test_skew_window_boundary():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    assert guard.check(NOW_MS + 10000) is Freshness.FRESH
    assert guard.check(NOW_MS + 10001) is Freshness.TOO_FAR_IN_FUTURE
    assert not guard.accept(NOW_MS + 10001)
    assert guard.last_accepted == 0


def test_future_counter_becomes_acceptable_as_clock_advances():
    clock = Clock(NOW_MS)
    guard = ReplayGuard(clock=clock)
    counter = NOW_MS + 20000
    assert not guard.accept(counter)
    clock.now += 10000
    assert guard.accept(counter)


def test_check_does_not_mutate():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    assert guard.check(42) is Freshness.FRESH
    assert guard.check(42) is Freshness.FRESH
    assert guard.last_accepted == 0


def test_counters_beyond_64_bits_are_not_truncated():
    clock = Clock(2 ** 70)
    guard = ReplayGuard(clock=clock)
    assert guard.accept(2 ** 64 + 1)
    assert not guard.accept(1)
    assert guard.last_accepted == 2 ** 64 + 1


def test_concurrent_accepts_of_same_counter_have_one_winner():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    barrier = threading.Barrier(16)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        ok = guard.accept(1000)
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert guard.last_accepted == 1000


def test_concurrent_accepts_keep_mark_at_maximum_accepted():
    guard = ReplayGuard(clock=Clock(NOW_MS))
    accepted = []
    lock = threading.Lock()
    barrier = threading.Barrier(50)

    def worker(counter):
        barrier.wait()
        if guard.accept(counter):
            with lock:
                accepted.append(counter)

    threads = [threading.Thread(target=worker, args=(c,)) for c in range(1, 51)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert accepted
    assert len(accepted) == len(set(accepted))
    assert guard.last_accepted == max(accepted)
    assert not guard.accept(max(accepted))
