import math
import random
import string
import time

COLOURS = ["red", "blue", "green", "yellow", "purple", "pink", "orange"]


def now_ts() -> float:
    return time.time()


def now_seconds() -> int:
    return round_half_up(time.time())


def round_half_up(value: float) -> int:
    # builtin round() is banker's rounding, scores need 2.5 -> 3
    return int(math.floor(value + 0.5))


def random_colour() -> str:
    return random.choice(COLOURS)


def random_player_name() -> str:
    letters = "".join(random.sample(string.ascii_lowercase, 5))
    digits = "".join(random.sample(string.digits, 3))
    return letters + digits
