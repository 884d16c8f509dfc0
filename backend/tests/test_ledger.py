import pytest

from songguess.services.sessions.ledger import AttemptEntry, AttemptLedger


def test_first_guess_opens_entry():
    ledger = AttemptLedger()
    entry = ledger.record_guess('s1', False, 1000)
    assert entry == AttemptEntry('s1', 1, 1000, 1000, False)
    assert 's1' in ledger
    assert len(ledger) == 1


def test_repeat_guesses_keep_start_time():
    ledger = AttemptLedger()
    ledger.record_guess('s1', False, 1000)
    ledger.record_guess('s1', False, 4000)
    entry = ledger.record_guess('s1', True, 9000)
    assert entry.attempts == 3
    assert entry.is_correct is True
    assert entry.start_time == 1000
    assert entry.end_time == 9000
    assert entry.elapsed_seconds(9000) == 8.0


def test_correct_flag_tracks_latest_guess():
    ledger = AttemptLedger()
    ledger.record_guess('s1', True, 1000)
    assert ledger.record_guess('s1', False, 2000).is_correct is False


def test_completion_time_spans_all_songs():
    ledger = AttemptLedger()
    assert ledger.completion_time_seconds() is None
    ledger.record_guess('a', True, 10_000)
    ledger.record_guess('b', False, 12_000)
    ledger.record_guess('b', True, 41_500)
    assert ledger.completion_time_seconds() == 32
    assert ledger.total_attempts() == 3


def test_json_round_trip_is_lossless():
    ledger = AttemptLedger()
    ledger.record_guess('a', False, 1_700_000_000_000)
    ledger.record_guess('a', True, 1_700_000_004_321)
    ledger.record_guess('b', False, 1_700_000_010_000)
    restored = AttemptLedger.from_json(ledger.to_json())
    assert restored == ledger
    assert restored['a'].to_dict() == {
        'songId': 'a',
        'attempts': 2,
        'startTime': 1_700_000_000_000,
        'endTime': 1_700_000_004_321,
        'isCorrect': True,
    }


def test_empty_blob_loads_as_empty_ledger():
    assert len(AttemptLedger.from_json(None)) == 0
    assert len(AttemptLedger.from_json('')) == 0
    assert len(AttemptLedger.from_json('{}')) == 0


@pytest.mark.parametrize('raw', ['not json', '[1, 2]', '{"a": {"songId": "a"}}'])
def test_malformed_blob_is_rejected(raw):
    with pytest.raises(ValueError):
        AttemptLedger.from_json(raw)
