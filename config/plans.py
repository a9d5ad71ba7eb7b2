import json
from typing import Dict, Optional

from core.entities.plan import Plan


DEFAULT_PLANS: Dict[str, Plan] = {
    "Basic": Plan(name="Basic", credits=100, amount=10),
    "Advanced": Plan(name="Advanced", credits=500, amount=50),
    "Business": Plan(name="Business", credits=5000, amount=250),
}


def _positive_int(value, field: str, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Plan {name!r}: {field} must be a positive integer, got {value!r}")
    return value


def load_plans(raw: Optional[str] = None) -> Dict[str, Plan]:
    """Собирает таблицу тарифов из JSON (или берёт дефолтную) и проверяет её.

    Вызывается на старте приложения: кривая таблица должна валить запуск, а не оплату.
    """
    if not raw or not raw.strip():
        return dict(DEFAULT_PLANS)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"PLANS is not valid JSON: {e}") from e
    if not isinstance(data, dict) or not data:
        raise ValueError("PLANS must be a non-empty JSON object")

    plans: Dict[str, Plan] = {}
    for name, spec in data.items():
        if not name.strip():
            raise ValueError("Plan name must not be empty")
        if not isinstance(spec, dict):
            raise ValueError(f"Plan {name!r} must be an object with credits and amount")
        plans[name] = Plan(
            name=name,
            credits=_positive_int(spec.get("credits"), "credits", name),
            amount=_positive_int(spec.get("amount"), "amount", name),
        )
    return plans
