from dataclasses import dataclass
from typing import Optional

@dataclass
class Transaction:
    id: Optional[int]
    user_id: int
    plan: str               # "Basic" | "Advanced" | "Business"
    amount: int             # в единицах валюты, не в копейках
    credits: int
    paid: bool
    created_at: str
