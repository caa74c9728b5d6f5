import pytest

from wgkit.replay import WINDOW_SIZE, ReplayFilter

REJECT_AFTER_MESSAGES = (1 << 64) - (1 << 13) - 1
T_LIM = WINDOW_SIZE + 1

SEQUENCE = [
    (0, True),
    (1, True),
    (1, False),
    (9, True),
    (8, True),
    (7, True),
    (7, False),
    (T_LIM, True),
    (T_LIM - 1, True),
    (T_LIM - 1, False),
    (T_LIM - 2, True),
    (2, True),
    (2, False),
    (T_LIM + 16, True),
    (3, False),
    (T_LIM + 16, False),
    (T_LIM * 4, True),
    (T_LIM * 4 - (T_LIM - 1), True),
    (10, False),
    (T_LIM * 4 - T_LIM, False),
    (T_LIM * 4 - (T_LIM + 1), False),
    (T_LIM * 4 - (T_LIM - 2), True),
    (T_LIM * 4 + 1 - T_LIM, False),
    (0, False),
    (REJECT_AFTER_MESSAGES, False),
    (REJECT_AFTER_MESSAGES - 1, True),
    (REJECT_AFTER_MESSAGES, False),
    (REJECT_AFTER_MESSAGES - 1, False),
    (REJECT_AFTER_MESSAGES - 2, True),
    (REJECT_AFTER_MESSAGES + 1, False),
    (REJECT_AFTER_MESSAGES + 2, False),
    (REJECT_AFTER_MESSAGES - 2, False),
    (REJECT_AFTER_MESSAGES - 3, True),
    (0, False),
]


def _check(filt, counter, expected, label):
    got = filt.validate_counter(counter, REJECT_AFTER_MESSAGES)
    assert got is expected, f"{label}: counter {counter}"


def _run_sequence(filt):
    filt.reset()
    for number, (counter, expected) in enumerate(SEQUENCE, start=1):
        _check(filt, counter, expected, f"test {number}")


def test_sequence():
    filt = ReplayFilter()
    filt.reset()
    results = [
        filt.validate_counter(counter, REJECT_AFTER_MESSAGES)
        for counter, _ in SEQUENCE
    ]
    assert results == [expected for _, expected in SEQUENCE]


def test_bulk_after_sequence():
    filt = ReplayFilter()
    _run_sequence(filt)

    filt.reset()
    for i in range(1, WINDOW_SIZE + 1):
        _check(filt, i, True, "bulk 1")
    _check(filt, 0, True, "bulk 1")
    _check(filt, 0, False, "bulk 1")

    filt.reset()
    for i in range(2, WINDOW_SIZE + 2):
        _check(filt, i, True, "bulk 2")
    _check(filt, 1, True, "bulk 2")
    _check(filt, 0, False, "bulk 2")

    filt.reset()
    for i in range(WINDOW_SIZE + 1, 0, -1):
        _check(filt, i, True, "bulk 3")

    filt.reset()
    for i in range(WINDOW_SIZE + 2, 1, -1):
        _check(filt, i, True, "bulk 4")
    _check(filt, 0, False, "bulk 4")

    filt.reset()
    for i in range(WINDOW_SIZE, 0, -1):
        _check(filt, i, True, "bulk 5")
    _check(filt, WINDOW_SIZE + 1, True, "bulk 5")
    _check(filt, 0, False, "bulk 5")

    filt.reset()
    for i in range(WINDOW_SIZE, 0, -1):
        _check(filt, i, True, "bulk 6")
    _check(filt, 0, True, "bulk 6")
    assert filt.validate_counter(WINDOW_SIZE + 1, REJECT_AFTER_MESSAGES) is True


@pytest.mark.parametrize("counter,limit", [(5, 5), (6, 5), (0, 0)])
def test_over_limit_rejected(counter, limit):
    assert ReplayFilter().validate_counter(counter, limit) is False


def test_duplicate_rejected_on_fresh_filter():
    filt = ReplayFilter()
    assert filt.validate_counter(42, 100) is True
    assert filt.validate_counter(42, 100) is False