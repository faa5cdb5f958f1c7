import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from quickfinger.models import FRAMEWORKS, Number

MIN_NICKNAME_LENGTH = 2
MAX_NICKNAME_LENGTH = 20
MIN_SCORE = 0
MAX_SCORE = 1000

_DISALLOWED_CHARS = re.compile(r'[^a-zA-Z0-9 _-]')
_WHITESPACE_RUN = re.compile(r'\s+')


class ValidationError(ValueError):
    """Raised when an inbound score submission is rejected."""


@dataclass(frozen=True)
class ScoreSubmission:
    nickname: str
    score: Number
    framework: str


def sanitize_nickname(nickname: Any) -> Optional[str]:
    """Trim, drop disallowed characters and collapse whitespace runs.

    Returns None for non-strings or when nothing is left.
    """
    if not isinstance(nickname, str):
        return None
    sanitized = nickname.strip()
    sanitized = _DISALLOWED_CHARS.sub('', sanitized)
    sanitized = _WHITESPACE_RUN.sub(' ', sanitized)
    return sanitized or None


def validate_score(score: Any) -> Number:
    # bool is an int subclass but never a valid score
    if isinstance(score, bool) or not isinstance(score, (int, float)) or math.isnan(score):
        raise ValidationError(f'Invalid score. Must be between {MIN_SCORE} and {MAX_SCORE}')
    if score < MIN_SCORE or score > MAX_SCORE:
        raise ValidationError(f'Invalid score. Must be between {MIN_SCORE} and {MAX_SCORE}')
    if isinstance(score, float) and score.is_integer():
        return int(score)
    return score


def validate_submission(payload: Any) -> ScoreSubmission:
    """Turn an untrusted SCORE_SUBMIT payload into a ScoreSubmission.

    Raises ValidationError with a human-readable reason on the first
    failing field; nothing is partially accepted.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Invalid score submission')

    nickname = sanitize_nickname(payload.get('nickname'))
    if not nickname:
        raise ValidationError('Invalid nickname')
    if not MIN_NICKNAME_LENGTH <= len(nickname) <= MAX_NICKNAME_LENGTH:
        raise ValidationError(
            f'Nickname must be between {MIN_NICKNAME_LENGTH} and {MAX_NICKNAME_LENGTH} characters'
        )

    score = validate_score(payload.get('score'))

    framework = payload.get('framework')
    if framework not in FRAMEWORKS:
        raise ValidationError('Invalid framework')

    return ScoreSubmission(nickname=nickname, score=score, framework=framework)
