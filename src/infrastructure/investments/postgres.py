from contextlib import closing
from datetime import datetime
from decimal import Decimal
from importlib.util import find_spec
from typing import Optional

from src.core.investments.models import InvestmentProposalRecord, RiskLevel
from src.core.investments.service import (
    DuplicateProposalReferenceError,
    InvestmentProposalNotFoundError,
)
from src.infrastructure.postgres_migrations import apply_postgres_migrations

_SELECT_COLUMNS = """
    SELECT
        id,
        proposal_reference,
        client_name,
        investment_amount,
        expected_return,
        risk_level,
        investment_type,
        assigned_advisor,
        created_at,
        approved
    FROM investment_proposals
"""


class PostgresInvestmentProposalRepository:
    def __init__(self, *, dsn: str) -> None:
        if not dsn:
            raise RuntimeError("INVESTMENT_POSTGRES_DSN_REQUIRED")
        if find_spec("psycopg") is None:
            raise RuntimeError("INVESTMENT_POSTGRES_DRIVER_MISSING")
        self._dsn = dsn
        self._init_db()

    def save(self, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord:
        with closing(self._connect()) as connection:
            if proposal.id is None:
                saved = self._insert(connection=connection, proposal=proposal)
            else:
                saved = self._update(connection=connection, proposal=proposal)
            connection.commit()
        return saved

    def find_by_id(self, *, proposal_id: int) -> Optional[InvestmentProposalRecord]:
        query = f"{_SELECT_COLUMNS} WHERE id = %s"
        with closing(self._connect()) as connection:
            row = connection.execute(query, (proposal_id,)).fetchone()
        return _to_proposal(row)

    def find_all(self) -> list[InvestmentProposalRecord]:
        return self._select(f"{_SELECT_COLUMNS} ORDER BY id ASC", ())

    def find_page(self, *, page: int, size: int) -> tuple[list[InvestmentProposalRecord], int]:
        query = f"{_SELECT_COLUMNS} ORDER BY id ASC LIMIT %s OFFSET %s"
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (size, page * size)).fetchall()
            total_row = connection.execute(
                "SELECT COUNT(*) AS total FROM investment_proposals"
            ).fetchone()
        return [_to_proposal(row) for row in rows], int(total_row["total"])

    def find_by_client_name_containing_ignore_case(
        self, *, client_name: str
    ) -> list[InvestmentProposalRecord]:
        query = f"""
            {_SELECT_COLUMNS}
            WHERE LOWER(client_name) LIKE %s ESCAPE '\\'
            ORDER BY id ASC
        """
        return self._select(query, (f"%{_escape_like(client_name.lower())}%",))

    def find_by_risk_level(self, *, risk_level: RiskLevel) -> list[InvestmentProposalRecord]:
        query = f"{_SELECT_COLUMNS} WHERE risk_level = %s ORDER BY id ASC"
        return self._select(query, (risk_level,))

    def find_by_approved(self, *, approved: bool) -> list[InvestmentProposalRecord]:
        query = f"{_SELECT_COLUMNS} WHERE approved = %s ORDER BY id ASC"
        return self._select(query, (approved,))

    def find_by_type_and_min_amount(
        self, *, investment_type: str, min_amount: Decimal
    ) -> list[InvestmentProposalRecord]:
        query = f"""
            {_SELECT_COLUMNS}
            WHERE investment_type = %s AND investment_amount >= %s
            ORDER BY id ASC
        """
        return self._select(query, (investment_type, min_amount))

    def find_high_value_descending(
        self, *, threshold: Decimal
    ) -> list[InvestmentProposalRecord]:
        query = f"""
            {_SELECT_COLUMNS}
            WHERE investment_amount > %s
            ORDER BY investment_amount DESC
        """
        return self._select(query, (threshold,))

    def find_by_advisor(self, *, advisor: str) -> list[InvestmentProposalRecord]:
        query = f"{_SELECT_COLUMNS} WHERE assigned_advisor = %s ORDER BY id ASC"
        return self._select(query, (advisor,))

    def count_by_risk_level(self, *, risk_level: RiskLevel) -> int:
        query = "SELECT COUNT(*) AS total FROM investment_proposals WHERE risk_level = %s"
        with closing(self._connect()) as connection:
            row = connection.execute(query, (risk_level,)).fetchone()
        return int(row["total"])

    def delete(self, proposal: InvestmentProposalRecord) -> None:
        with closing(self._connect()) as connection:
            connection.execute("DELETE FROM investment_proposals WHERE id = %s", (proposal.id,))
            connection.commit()

    def _connect(self):
        psycopg, dict_row = _import_psycopg()
        return psycopg.connect(self._dsn, row_factory=dict_row)

    def _init_db(self) -> None:
        with closing(self._connect()) as connection:
            apply_postgres_migrations(connection=connection, namespace="investments")

    def _select(self, query: str, args: tuple) -> list[InvestmentProposalRecord]:
        with closing(self._connect()) as connection:
            rows = connection.execute(query, args).fetchall()
        return [_to_proposal(row) for row in rows]

    def _insert(self, *, connection, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord:
        query = """
            INSERT INTO investment_proposals (
                proposal_reference,
                client_name,
                investment_amount,
                expected_return,
                risk_level,
                investment_type,
                assigned_advisor,
                created_at,
                approved
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (proposal_reference) DO NOTHING
            RETURNING id
        """
        row = connection.execute(
            query,
            (
                proposal.proposal_reference,
                proposal.client_name,
                proposal.investment_amount,
                proposal.expected_return,
                proposal.risk_level,
                proposal.investment_type,
                proposal.assigned_advisor,
                proposal.created_at.isoformat(),
                proposal.approved,
            ),
        ).fetchone()
        if row is None:
            connection.rollback()
            raise DuplicateProposalReferenceError(proposal.proposal_reference)
        return proposal.with_id(int(row["id"]))

    def _update(self, *, connection, proposal: InvestmentProposalRecord) -> InvestmentProposalRecord:
        clash = connection.execute(
            "SELECT id FROM investment_proposals WHERE proposal_reference = %s AND id <> %s",
            (proposal.proposal_reference, proposal.id),
        ).fetchone()
        if clash is not None:
            raise DuplicateProposalReferenceError(proposal.proposal_reference)
        query = """
            UPDATE investment_proposals SET
                proposal_reference = %s,
                client_name = %s,
                investment_amount = %s,
                expected_return = %s,
                risk_level = %s,
                investment_type = %s,
                assigned_advisor = %s,
                approved = %s
            WHERE id = %s
        """
        cursor = connection.execute(
            query,
            (
                proposal.proposal_reference,
                proposal.client_name,
                proposal.investment_amount,
                proposal.expected_return,
                proposal.risk_level,
                proposal.investment_type,
                proposal.assigned_advisor,
                proposal.approved,
                proposal.id,
            ),
        )
        if cursor.rowcount == 0:
            connection.rollback()
            raise InvestmentProposalNotFoundError(proposal.id)
        return proposal.model_copy()


def _import_psycopg():
    import psycopg
    from psycopg.rows import dict_row

    return psycopg, dict_row


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_proposal(row) -> Optional[InvestmentProposalRecord]:
    if row is None:
        return None
    return InvestmentProposalRecord(
        id=int(row["id"]),
        proposal_reference=row["proposal_reference"],
        client_name=row["client_name"],
        investment_amount=Decimal(str(row["investment_amount"])),
        expected_return=Decimal(str(row["expected_return"])),
        risk_level=row["risk_level"],
        investment_type=row["investment_type"],
        assigned_advisor=row["assigned_advisor"],
        created_at=datetime.fromisoformat(row["created_at"]),
        approved=bool(row["approved"]),
    )
