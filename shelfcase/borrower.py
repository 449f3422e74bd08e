from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


def new_uid() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Loan:
    """
    One entry lent to one borrower. The entry is referenced by id and the
    borrower by uid, so neither side owns the other.
    """
    entry_id: int
    loan_date: date = field(default_factory=date.today)
    due_date: Optional[date] = None
    note: str = ""
    uid: str = field(default_factory=new_uid)
    borrower_uid: Optional[str] = None
    in_calendar: bool = False

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.due_date is None:
            return False
        return self.due_date < (today or date.today())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "entry_id": self.entry_id,
            "loan_date": self.loan_date.isoformat(),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "note": self.note,
            "in_calendar": self.in_calendar,
        }


@dataclass(eq=False)
class Borrower:
    name: str
    uid: str = field(default_factory=new_uid)
    loans: List[Loan] = field(default_factory=list)

    def loan(self, entry_id: int) -> Optional[Loan]:
        for loan in self.loans:
            if loan.entry_id == entry_id:
                return loan
        return None

    def add_loan(self, loan: Loan) -> None:
        self.loans.append(loan)
        loan.borrower_uid = self.uid

    def remove_loan(self, loan: Loan) -> bool:
        before = len(self.loans)
        self.loans = [l for l in self.loans if l is not loan]
        return len(self.loans) != before

    def remove_loans_for_entry(self, entry_id: int) -> List[Loan]:
        gone = [l for l in self.loans if l.entry_id == entry_id]
        if gone:
            self.loans = [l for l in self.loans if l.entry_id != entry_id]
        return gone

    def overdue_loans(self, today: Optional[date] = None) -> List[Loan]:
        return [l for l in self.loans if l.is_overdue(today)]

    @property
    def is_empty(self) -> bool:
        return not self.loans
