"""Exceptions raised by the token bag engine."""


class TokenBagError(Exception):
    """Base class for token bag errors."""
    pass


class BagInvariantError(TokenBagError):
    """Bag counts went negative. Internal consistency fault, never user input."""
    def __init__(self, white: int, black: int):
        self.white = white
        self.black = black
        super().__init__(
            f"Bag invariant violated: white={white}, black={black}. "
            "Counts must never be negative."
        )


class RandomSourceExhausted(TokenBagError):
    """A scripted random source ran out of values."""
    pass
