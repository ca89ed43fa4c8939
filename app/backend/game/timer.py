from __future__ import annotations


class RoundTimer:
    """Обратный отсчёт раунда. Единственный, кто меняет time_remaining."""

    def __init__(self, duration: int):
        self.duration = duration
        self.time_remaining = duration
        self.expired = False

    def tick(self) -> bool:
        """
        Минус одна секунда. True ровно один раз: на тике, где осталось 0.
        После этого тики ничего не меняют.
        """
        if self.expired:
            return False
        self.time_remaining = max(0, self.time_remaining - 1)
        if self.time_remaining == 0:
            self.expired = True
            return True
        return False
