"""
Tape: a fixed window of the most recent tokens.

It works like a finite queue. Every push shifts the contents one slot to
the left, dropping the oldest token, and writes the new token into the last
slot. The tape is "ready" once it has seen at least `capacity` tokens.

A tape of capacity 0 holds nothing and is always ready. That is exactly what
a unigram model needs: there is no context to wait for.
"""

from charngram.errors import InvalidCapacity


class Tape:
    def __init__(self, capacity: int):
        if capacity < 0:
            raise InvalidCapacity(f"tape capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self.n = 0  # tokens seen, saturates at capacity
        self.buffer = [0] * capacity

    def push(self, token: int) -> bool:
        """Append a token, returning True if the tape is full."""
        if self.capacity == 0:
            return True
        # Shift left by one, new token goes at the end
        self.buffer[:-1] = self.buffer[1:]
        self.buffer[-1] = token
        if self.n < self.capacity:
            self.n += 1
        return self.n == self.capacity

    def fill(self, token: int) -> None:
        """Set every slot to `token` and mark the tape as ready."""
        self.buffer = [token] * self.capacity
        self.n = self.capacity

    def reset(self) -> None:
        self.buffer = [0] * self.capacity
        self.n = 0

    @property
    def ready(self) -> bool:
        return self.n == self.capacity

    def tokens(self) -> list[int]:
        return list(self.buffer)

    def __len__(self):
        return self.capacity
