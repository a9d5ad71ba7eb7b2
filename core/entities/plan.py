from dataclasses import dataclass


@dataclass(frozen=True)
class Plan:
    name: str
    credits: int
    amount: int

    @property
    def amount_minor(self) -> int:
        return self.amount * 100
