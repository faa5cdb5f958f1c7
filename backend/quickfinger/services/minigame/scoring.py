MAX_SCORE = 1000
PENALTY_PER_PERCENT = 20

PERFECT = 'PERFECT'
EXCELLENT = 'Excellent'
GREAT = 'Great'
GOOD = 'Good'
NOT_BAD = 'Not bad'
TRY_AGAIN = 'Try again'


def calculate_score(position: float, target: float = 50) -> int:
    """Score a stopped slider by its distance from the target.

    Both values are percentages (0-100); anything outside that range
    scores 0. Each percent of distance costs 20 points.
    """
    if position < 0 or position > 100:
        return 0
    if target < 0 or target > 100:
        return 0
    distance = abs(position - target)
    # halves round up
    penalty = int(distance * PENALTY_PER_PERCENT + 0.5)
    return max(0, MAX_SCORE - penalty)


def score_rating(score: int) -> str:
    if score >= 995:
        return PERFECT
    if score >= 950:
        return EXCELLENT
    if score >= 850:
        return GREAT
    if score >= 700:
        return GOOD
    if score >= 500:
        return NOT_BAD
    return TRY_AGAIN
