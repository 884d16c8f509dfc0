import random
import string
from typing import Callable, Optional

from .errors import CodeGenerationExhausted

CODE_ALPHABET = string.digits + string.ascii_uppercase
CODE_LENGTH = 6


def number_to_code(sequence_number: int, random_offset: int, rng: Optional[random.Random] = None) -> str:
    """Encode ``sequence_number * 1000 + random_offset`` as a 6-char base-36 code.

    Short results are left-padded with random base-36 characters.
    """
    rng = rng or random
    num = sequence_number * 1000 + random_offset
    result = ''
    while num > 0:
        num, rem = divmod(num, 36)
        result = CODE_ALPHABET[rem] + result
    while len(result) < CODE_LENGTH:
        result = rng.choice(CODE_ALPHABET) + result
    return result


def generate_unique_code(
    is_code_active: Callable[[str], bool],
    session_count: int,
    retries: int = 3,
    rng: Optional[random.Random] = None,
) -> str:
    """Return a code no WAITING/ACTIVE session is using.

    ``is_code_active`` answers whether a non-terminal session already holds
    the code; codes from completed sessions may come back.
    """
    rng = rng or random
    next_id = session_count + 1
    for _ in range(retries):
        code = number_to_code(next_id, rng.randrange(1000), rng)
        if not is_code_active(code):
            return code
    raise CodeGenerationExhausted()
