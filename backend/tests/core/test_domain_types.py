"""Domain types tests — enums and the procedure fee table."""

from datetime import date
from decimal import Decimal

from tramites.core.domain_types import (
    DEFAULT_PROCEDURE_FEE, DebtStatus, ProcedureStatus, fee_for,
)
from tramites.core.entities import Debt


def test_procedure_status_has_four_states():
    assert {s.value for s in ProcedureStatus} == {
        "PENDING", "IN_REVIEW", "CANCELLED", "COMPLETED",
    }


def test_known_fees():
    assert fee_for("LICENCIA_FUNCIONAMIENTO") == Decimal("245.00")
    assert fee_for("PERMISO_CONSTRUCCION") == Decimal("380.00")
    assert fee_for("CERTIFICADO_PARAMETROS") == Decimal("150.00")


def test_unknown_type_falls_back_to_default_fee():
    assert fee_for("SOMETHING_ELSE") == DEFAULT_PROCEDURE_FEE == Decimal("100.00")


def test_debt_total_is_derived():
    debt = Debt(
        id=1, citizen_id=1, type="ARBITRIOS",
        base_amount=Decimal("420.00"), late_interest=Decimal("45.00"),
        period="Ene-Mar 2024", due_date=date(2024, 11, 15),
    )
    assert debt.total_amount == Decimal("465.00")
    debt.late_interest = Decimal("50.00")
    assert debt.total_amount == Decimal("470.00")
    assert debt.status == DebtStatus.PENDING
