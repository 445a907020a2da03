from wisdom.services.target import MAX_DIFFICULTY

QUADRATIC_THRESHOLD = 10


def calibrate(active: int) -> int:
    """
    Map the live connection count to a difficulty percent in [0, 200].

    Linear baseline of 10 per extra connection, plus a quadratic penalty
    past 10 connections so abusive concurrency gets expensive fast.
    """
    if active <= 1:
        return 0

    difficulty = 10 * (active - 1)
    if active > QUADRATIC_THRESHOLD:
        difficulty += (active - QUADRATIC_THRESHOLD) ** 2

    return min(difficulty, MAX_DIFFICULTY)
