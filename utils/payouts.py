from decimal import Decimal
from typing import Any, Iterable, List, Tuple

from utils.pricing import to_money, money_out


def allocate_payout(earnings: Iterable[Any], amount: Any) -> List[Tuple[Any, Decimal]]:
    """
    Greedy first-come allocation of a payout amount across available earnings.
    Earnings are consumed in the order given; each allocation is
    min(remaining, net_earnings). The walk stops once the amount is covered.
    """
    remaining = to_money(amount)
    out: List[Tuple[Any, Decimal]] = []
    for earning in earnings:
        if remaining <= 0:
            break
        if earning.status != "available":
            continue
        alloc = min(remaining, to_money(earning.net_earnings))
        out.append((earning, alloc))
        remaining = to_money(remaining - alloc)
    return out


def available_balance(earnings: Iterable[Any]) -> Decimal:
    return to_money(sum((to_money(e.net_earnings) for e in earnings if e.status == "available"), Decimal("0")))


def payout_stats(earnings: Iterable[Any], requests: Iterable[Any]) -> dict:
    earnings = list(earnings)
    requests = list(requests)
    total = sum((to_money(e.net_earnings) for e in earnings), Decimal("0"))
    return {
        "totalEarnings": money_out(total),
        "availableBalance": money_out(available_balance(earnings)),
        "pendingPayouts": len([r for r in requests if r.status == "pending"]),
        "completedPayouts": len([r for r in requests if r.status == "completed"]),
    }


def payment_details_for(method: str, form: dict) -> dict:
    if method == "bank_transfer":
        return {
            "bankName": form.get("bankName") or "",
            "accountNumber": form.get("accountNumber") or "",
            "sortCode": form.get("sortCode") or "",
            "accountHolderName": form.get("accountHolderName") or "",
        }
    if method == "paypal":
        return {"paypalEmail": form.get("paypalEmail") or ""}
    return {}
