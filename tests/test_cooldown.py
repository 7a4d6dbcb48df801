from cooldown import COOLDOWN_WINDOW, CooldownLedger


def test_default_window_is_thirty_minutes():
    assert COOLDOWN_WINDOW == 30 * 60


def test_record_blocks_both_directions_with_same_expiry():
    ledger = CooldownLedger()
    ledger.record("a", "b", 100.0)

    assert ledger.is_blocked("a", "b", 50.0)
    assert ledger.is_blocked("b", "a", 50.0)
    assert ledger.remaining("a", "b", 50.0) == ledger.remaining("b", "a", 50.0) == 50.0
    assert not ledger.is_blocked("a", "c", 50.0)


def test_block_ends_at_expiry():
    ledger = CooldownLedger()
    ledger.record("a", "b", 100.0)

    assert ledger.is_blocked("a", "b", 99.9)
    assert not ledger.is_blocked("a", "b", 100.0)
    assert ledger.remaining("a", "b", 150.0) == 0


def test_purge_removes_only_expired_entries():
    ledger = CooldownLedger()
    ledger.record("a", "b", 100.0)
    ledger.record("a", "c", 300.0)

    removed = ledger.purge(200.0)

    assert removed == 2
    assert len(ledger) == 2
    assert ledger.is_blocked("a", "c", 200.0)
    assert ledger.is_blocked("c", "a", 200.0)
    assert ledger.purge(200.0) == 0


def test_rerecord_extends_expiry():
    ledger = CooldownLedger()
    ledger.record("a", "b", 100.0)
    ledger.record("b", "a", 500.0)

    assert ledger.is_blocked("a", "b", 400.0)
    assert len(ledger) == 2
