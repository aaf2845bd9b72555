"""Reconciliation API router tests.

Endpoints under /workspaces/{workspace_id}/reconciliation:
- GET  /transactions
- GET  /transactions/{transaction_id}/suggestions
- GET  /suggestions
- GET  /high-confidence
- GET  /matches
- GET  /summary
- POST /matches/approve
- POST /matches/manual
- POST /suggestions/reject
- POST /matches/bulk-approve
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select

from recon.models import AuditLogEntry, Match, Transaction, TransactionSource, TransactionStatus
from tests.factories import (
    BankTransactionFactory,
    LedgerTransactionFactory,
    create_matched_pair,
    make_access_token,
)


def _base(workspace_id) -> str:
    return f"/workspaces/{workspace_id}/reconciliation"


async def _aws_pair(db, workspace_id, *, bank_amount="-2450.00", ledger_amount="-2450.00", **ledger_kwargs):
    bank = await BankTransactionFactory.create_async(
        db, workspace_id, description="AWS", amount=Decimal(bank_amount)
    )
    ledger = await LedgerTransactionFactory.create_async(
        db,
        workspace_id,
        description="Amazon Web Services - March",
        amount=Decimal(ledger_amount),
        **ledger_kwargs,
    )
    return bank, ledger


async def _count(session_maker, model):
    async with session_maker() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestAuthentication:
    async def test_requires_token(self, public_client: AsyncClient, workspace_id):
        response = await public_client.get(f"{_base(workspace_id)}/transactions")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_token_for_unknown_user(self, public_client: AsyncClient, workspace_id):
        token = make_access_token(uuid4())
        response = await public_client.get(
            f"{_base(workspace_id)}/transactions",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "User not found"

    async def test_garbage_token(self, public_client: AsyncClient, workspace_id):
        response = await public_client.get(
            f"{_base(workspace_id)}/transactions",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestReadEndpoints:
    async def test_list_transactions_filters_by_source(self, client: AsyncClient, db, workspace_id):
        # GIVEN two bank and one ledger transaction, plus noise in another workspace
        await _aws_pair(db, workspace_id)
        await BankTransactionFactory.create_async(db, workspace_id)
        await BankTransactionFactory.create_async(db, uuid4())
        await db.commit()

        # WHEN listing bank transactions
        response = await client.get(f"{_base(workspace_id)}/transactions", params={"source": "bank"})

        # THEN only this workspace's bank rows are returned
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert {item["source"] for item in data["items"]} == {"bank"}

    async def test_list_transactions_paging(self, client: AsyncClient, db, workspace_id):
        for offset in range(3):
            await BankTransactionFactory.create_async(
                db, workspace_id, txn_date=date(2024, 3, 1) + timedelta(days=offset)
            )
        await db.commit()

        response = await client.get(
            f"{_base(workspace_id)}/transactions", params={"limit": 2, "offset": 0}
        )

        data = response.json()
        assert data["total"] == 3
        assert [item["txn_date"] for item in data["items"]] == ["2024-03-03", "2024-03-02"]

    async def test_transaction_suggestions(self, client: AsyncClient, db, workspace_id):
        bank, exact = await _aws_pair(db, workspace_id)
        fee = await LedgerTransactionFactory.create_async(
            db,
            workspace_id,
            description="Amazon Web Services - April",
            amount=Decimal("-2500.00"),
        )
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/transactions/{bank.id}/suggestions")

        assert response.status_code == status.HTTP_200_OK
        items = response.json()["items"]
        assert [item["candidate_id"] for item in items] == [str(exact.id), str(fee.id)]
        assert items[0]["confidence"] == 0.99
        assert items[0]["match_type"] == "exact"
        assert items[0]["candidate"]["description"] == "Amazon Web Services - March"

    async def test_suggestions_for_missing_transaction(self, client: AsyncClient, workspace_id):
        response = await client.get(f"{_base(workspace_id)}/transactions/{uuid4()}/suggestions")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Transaction not found"

    async def test_suggestions_for_matched_transaction_are_empty(self, client: AsyncClient, db, workspace_id):
        bank, _, _ = await create_matched_pair(db, workspace_id)
        await LedgerTransactionFactory.create_async(db, workspace_id, description="AWS")
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/transactions/{bank.id}/suggestions")

        assert response.json() == {"items": [], "total": 0}

    async def test_pool_suggestions(self, client: AsyncClient, db, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id)
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/suggestions")

        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["bank_transaction_id"] == str(bank.id)
        assert items[0]["ledger_transaction_id"] == str(ledger.id)

    async def test_high_confidence(self, client: AsyncClient, db, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id)
        await _aws_pair(db, workspace_id, bank_amount="-97.00", ledger_amount="-100.00")
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/high-confidence")

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["bank_transaction_id"] == str(bank.id)
        assert data["items"][0]["ledger_transaction_id"] == str(ledger.id)
        assert data["items"][0]["confidence"] == 0.99

    async def test_list_matches(self, client: AsyncClient, db, workspace_id):
        bank, ledger, match = await create_matched_pair(db, workspace_id)
        await create_matched_pair(db, uuid4())
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/matches")

        data = response.json()
        assert data["total"] == 1
        item = data["items"][0]
        assert item["id"] == str(match.id)
        assert item["bank_transaction"]["id"] == str(bank.id)
        assert item["ledger_transaction"]["id"] == str(ledger.id)

    async def test_summary(self, client: AsyncClient, db, workspace_id):
        await create_matched_pair(db, workspace_id)
        await BankTransactionFactory.create_async(db, workspace_id)
        await db.commit()

        response = await client.get(f"{_base(workspace_id)}/summary")

        assert response.json() == {
            "bank": {"total": 2, "matched": 1, "unmatched": 1},
            "ledger": {"total": 1, "matched": 1, "unmatched": 0},
            "match_count": 1,
            "match_rate": 0.5,
        }


class TestApproveEndpoint:
    async def test_approve_then_conflict(self, client: AsyncClient, db, session_maker, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id)
        await db.commit()
        payload = {
            "bank_transaction_id": str(bank.id),
            "ledger_transaction_id": str(ledger.id),
            "match_type": "exact",
            "confidence": 0.99,
            "reasoning": "Exact amount match on same date with matching vendor name",
        }

        first = await client.post(f"{_base(workspace_id)}/matches/approve", json=payload)
        second = await client.post(f"{_base(workspace_id)}/matches/approve", json=payload)

        assert first.status_code == status.HTTP_200_OK
        assert first.json()["success"] is True
        assert first.json()["match_id"]
        assert second.status_code == status.HTTP_409_CONFLICT
        assert second.json()["detail"] == {
            "error": "already_matched",
            "message": "One or both transactions already matched",
        }
        assert await _count(session_maker, Match) == 1

    async def test_approve_missing_pair(self, client: AsyncClient, workspace_id):
        payload = {
            "bank_transaction_id": str(uuid4()),
            "ledger_transaction_id": str(uuid4()),
            "match_type": "timing",
            "confidence": 0.95,
        }

        response = await client.post(f"{_base(workspace_id)}/matches/approve", json=payload)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["error"] == "not_found"

    async def test_approve_rejects_manual_type(self, client: AsyncClient, workspace_id):
        payload = {
            "bank_transaction_id": str(uuid4()),
            "ledger_transaction_id": str(uuid4()),
            "match_type": "manual",
            "confidence": 1.0,
        }

        response = await client.post(f"{_base(workspace_id)}/matches/approve", json=payload)

        assert response.status_code == 422

    @pytest.mark.parametrize("confidence", [1.2, 1.0])
    async def test_approve_rejects_out_of_range_confidence(self, client: AsyncClient, workspace_id, confidence):
        payload = {
            "bank_transaction_id": str(uuid4()),
            "ledger_transaction_id": str(uuid4()),
            "match_type": "exact",
            "confidence": confidence,
        }

        response = await client.post(f"{_base(workspace_id)}/matches/approve", json=payload)

        assert response.status_code == 422


class TestManualEndpoint:
    async def test_manual_match(self, client: AsyncClient, db, session_maker, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id, bank_amount="-5.00")
        await db.commit()

        response = await client.post(
            f"{_base(workspace_id)}/matches/manual",
            json={"bank_transaction_id": str(bank.id), "ledger_transaction_id": str(ledger.id)},
        )

        assert response.status_code == status.HTTP_200_OK
        async with session_maker() as session:
            match = (await session.execute(select(Match))).scalar_one()
        assert match.match_type.value == "manual"
        assert match.confidence == 1.0

    async def test_manual_swapped_sides(self, client: AsyncClient, db, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id)
        await db.commit()

        response = await client.post(
            f"{_base(workspace_id)}/matches/manual",
            json={"bank_transaction_id": str(ledger.id), "ledger_transaction_id": str(bank.id)},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == {
            "error": "invalid_source",
            "message": "First transaction must be a bank transaction",
        }


class TestRejectEndpoint:
    def _payload(self, bank, ledger):
        return {
            "bank_transaction_id": str(bank.id),
            "ledger_transaction_id": str(ledger.id),
            "match_type": "fee_adjusted",
            "confidence": 0.88,
            "reasoning": "Amount differs by $3.00 (3.0%) - likely payment processing fee",
        }

    async def test_reject_records_audit(self, client: AsyncClient, db, session_maker, workspace_id, test_user):
        bank, ledger = await _aws_pair(db, workspace_id, bank_amount="-97.00", ledger_amount="-100.00")
        await db.commit()

        response = await client.post(
            f"{_base(workspace_id)}/suggestions/reject", json=self._payload(bank, ledger)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["audit_entry_id"]
        async with session_maker() as session:
            entry = (await session.execute(select(AuditLogEntry))).scalar_one()
        assert entry.user_id == test_user.id

    async def test_reject_without_actor(self, public_client: AsyncClient, db, session_maker, workspace_id):
        bank, ledger = await _aws_pair(db, workspace_id)
        await db.commit()

        response = await public_client.post(
            f"{_base(workspace_id)}/suggestions/reject", json=self._payload(bank, ledger)
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == {"error": "unauthenticated", "message": "Not authenticated"}
        assert await _count(session_maker, AuditLogEntry) == 0


class TestBulkApproveEndpoint:
    async def test_bulk_approve_proposals(self, client: AsyncClient, db, session_maker, workspace_id):
        # GIVEN two clean pairs proposed by the high-confidence endpoint
        await _aws_pair(db, workspace_id)
        await _aws_pair(db, workspace_id, bank_amount="-12.00", ledger_amount="-12.00")
        await db.commit()
        proposals = (await client.get(f"{_base(workspace_id)}/high-confidence")).json()["items"]

        # WHEN they are bulk approved twice
        first = await client.post(f"{_base(workspace_id)}/matches/bulk-approve", json={"matches": proposals})
        second = await client.post(f"{_base(workspace_id)}/matches/bulk-approve", json={"matches": proposals})

        # THEN the first run approves both and the rerun only reports failures
        assert first.status_code == status.HTTP_200_OK
        assert first.json()["approved_count"] == 2
        assert first.json()["failed_count"] == 0
        assert second.json()["approved_count"] == 0
        assert second.json()["failed_count"] == 2
        assert await _count(session_maker, Match) == 2
        async with session_maker() as session:
            unmatched = await session.execute(
                select(func.count())
                .select_from(Transaction)
                .where(Transaction.status == TransactionStatus.UNMATCHED)
                .where(Transaction.source == TransactionSource.BANK)
            )
        assert unmatched.scalar_one() == 0

    async def test_bulk_approve_empty(self, client: AsyncClient, workspace_id):
        response = await client.post(f"{_base(workspace_id)}/matches/bulk-approve", json={"matches": []})
        assert response.json() == {
            "success": True,
            "approved_count": 0,
            "failed_count": 0,
            "error": None,
            "message": None,
        }

    async def test_bulk_approve_rejects_full_confidence_proposal(self, client: AsyncClient, workspace_id):
        payload = {
            "matches": [
                {
                    "bank_transaction_id": str(uuid4()),
                    "ledger_transaction_id": str(uuid4()),
                    "confidence": 1.0,
                    "match_type": "exact",
                }
            ]
        }

        response = await client.post(f"{_base(workspace_id)}/matches/bulk-approve", json=payload)

        assert response.status_code == 422
