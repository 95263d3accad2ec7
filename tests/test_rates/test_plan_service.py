"""Tests for custom plan creation and plan assignment."""

from __future__ import annotations

from decimal import Decimal

import pytest

from payout_ledger.core.config import settings
from payout_ledger.core.exceptions import PermissionDenied, RateNotFound, ValidationError
from payout_ledger.models.custom_plan import CustomPlan
from payout_ledger.models.enums import Brand, BrandGroup, PaymentType, Role
from payout_ledger.models.profile import Profile
from payout_ledger.services.rates.plans import PlanService, RateRow


def _rows() -> list[RateRow]:
    return [
        RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("1.50")),
        RateRow(BrandGroup.VISA_MASTER, PaymentType.CREDIT, 1, Decimal("2.99")),
        RateRow(BrandGroup.PIX, PaymentType.PIX_QRCODE, None, Decimal("0.00")),
    ]


class TestCreateCustomPlan:
    def test_plan_and_rates_are_stored(self, db_session, admin_profile) -> None:
        service = PlanService(db_session)

        plan = service.create_custom_plan(admin_profile.id, "  Partner  ", _rows())

        assert plan.name == "Partner"
        assert len(plan.rates) == 3
        assert [p.id for p in service.list_custom_plans()] == [plan.id]
        table = service.rate_table(str(plan.id))
        assert table.rates[("PIX", "pix_qrcode", None)] == Decimal("0.00")

    @pytest.mark.parametrize(
        "row",
        [
            RateRow(BrandGroup.PIX, PaymentType.DEBIT, None, Decimal("1.00")),
            RateRow(BrandGroup.ELO_AMEX, PaymentType.PIX_CONTA, None, Decimal("1.00")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.CREDIT, None, Decimal("1.00")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.CREDIT, 19, Decimal("1.00")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, 2, Decimal("1.00")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("100")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("-1")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("4.765")),
            RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, "n/a"),
        ],
    )
    def test_invalid_rows_are_rejected(self, db_session, admin_profile, row) -> None:
        with pytest.raises(ValidationError):
            PlanService(db_session).create_custom_plan(admin_profile.id, "Bad", [row])
        assert db_session.query(CustomPlan).count() == 0

    def test_sub_cent_rate_is_not_rounded(self, db_session, admin_profile) -> None:
        row = RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("4.765"))

        with pytest.raises(ValidationError, match="two decimals"):
            PlanService(db_session).create_custom_plan(admin_profile.id, "Odd", [row])

    def test_installment_limit_follows_settings(self, db_session) -> None:
        assert PlanService(db_session).max_installments == settings.max_installments
        assert PlanService(db_session, max_installments=12).max_installments == 12

    def test_duplicate_rows_are_rejected(self, db_session, admin_profile) -> None:
        rows = _rows() + [RateRow(BrandGroup.VISA_MASTER, PaymentType.DEBIT, None, Decimal("2"))]

        with pytest.raises(ValidationError, match="Duplicate"):
            PlanService(db_session).create_custom_plan(admin_profile.id, "Dup", rows)

    def test_empty_plan_is_rejected(self, db_session, admin_profile) -> None:
        with pytest.raises(ValidationError):
            PlanService(db_session).create_custom_plan(admin_profile.id, "Empty", [])

    def test_clients_cannot_create_plans(self, db_session, client_profile) -> None:
        with pytest.raises(PermissionDenied):
            PlanService(db_session).create_custom_plan(client_profile.id, "Mine", _rows())


class TestAssignPlan:
    def test_assign_custom_plan_prices_new_sales(
        self, db_session, admin_profile, client_profile, transactions
    ) -> None:
        service = PlanService(db_session)
        plan = service.create_custom_plan(admin_profile.id, "Partner", _rows())

        service.assign_plan(admin_profile.id, client_profile.id, str(plan.id))
        txn = transactions.create_transaction(
            client_profile.id, Decimal("200.00"), Brand.VISA_MASTER, PaymentType.DEBIT, 1
        )

        assert db_session.get(Profile, client_profile.id).plan == str(plan.id)
        assert txn.fee_percentage == Decimal("1.50")
        assert txn.net_value == Decimal("197.00")

    def test_unknown_plan_is_refused(self, db_session, admin_profile, client_profile) -> None:
        with pytest.raises(RateNotFound):
            PlanService(db_session).assign_plan(admin_profile.id, client_profile.id, "gold")
        assert db_session.get(Profile, client_profile.id).plan == "basic"

    def test_admins_have_no_plan(self, db_session, admin_profile, make_profile) -> None:
        other_admin = make_profile(Role.ADMIN)

        with pytest.raises(PermissionDenied):
            PlanService(db_session).assign_plan(admin_profile.id, other_admin.id, "top")
