from ._numeric import divide_and_round_up, gcd, randn, get_time

__all__ = [
    divide_and_round_up.__name__,
    gcd.__name__,
    randn.__name__,
    get_time.__name__,
]
