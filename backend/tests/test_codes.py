import random

import pytest

from songguess.services.sessions.codes import CODE_ALPHABET, number_to_code, generate_unique_code
from songguess.services.sessions.errors import CodeGenerationExhausted


def test_number_to_code_is_base36_and_padded():
    code = number_to_code(1, 0, random.Random(7))
    # 1 * 1000 + 0 = 1000 = 27 * 36 + 28 -> "RS"
    assert len(code) == 6
    assert code.endswith('RS')
    assert all(c in CODE_ALPHABET for c in code)


def test_number_to_code_without_padding():
    # 60467 * 1000 + 175 is past 36 ** 5, so all six digits are significant
    code = number_to_code(60467, 175)
    assert len(code) == 6
    assert int(code, 36) == 60467 * 1000 + 175


def test_generate_unique_code_skips_active_codes():
    rng = random.Random(3)
    seen = []

    def is_active(code):
        seen.append(code)
        return len(seen) == 1

    code = generate_unique_code(is_active, session_count=41, rng=rng)
    assert len(seen) == 2
    assert code == seen[1]


def test_generate_unique_code_gives_up():
    calls = []

    def always_active(code):
        calls.append(code)
        return True

    with pytest.raises(CodeGenerationExhausted):
        generate_unique_code(always_active, session_count=0, retries=3, rng=random.Random(1))
    assert len(calls) == 3
