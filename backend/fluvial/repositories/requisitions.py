from __future__ import annotations
from typing import Any, Dict, List, Optional
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from fluvial.models import Requisition, StatusLogEntry, SignatureRecord, ValidationRecord, User, Sector
from fluvial.utils.filters import apply_filters
from . import store_call


class DuplicateIdentifier(Exception):
    """Insert hit the unique constraint of a generated identifier."""


# Columns the identifier generators may look up
IDENTIFIER_COLUMNS = {
    'codigo_publico': Requisition.public_code,
    'numero_formatado': Requisition.formatted_number,
}


def duplicate_identifier_column(error: IntegrityError) -> Optional[str]:
    """Identifier column named by a unique violation, read from the driver message.

    SQLite reports "UNIQUE constraint failed: requisicoes.codigo_publico",
    MySQL reports 1062 "Duplicate entry '...' for key 'requisicoes.codigo_publico'".
    """
    message = str(error.orig)
    for column in IDENTIFIER_COLUMNS:
        if column in message:
            return column
    return None


REPRESENTATIVE_STATUSES = (Requisition.STATUS_APPROVED, Requisition.STATUS_AUTHORIZED)

LIST_FILTERS = {
    'status': {'op': lambda q, v: q.where(Requisition.status == v), 'coerce': str},
    'date_from': {'op': lambda q, v: q.where(Requisition.departure_date >= v)},
    'date_to': {'op': lambda q, v: q.where(Requisition.departure_date <= v)},
    'issuer_id': {'op': lambda q, v: q.where(Requisition.issuer_id == v), 'coerce': int},
}


class RequisitionRepository:
    def __init__(self, session: Session):
        self.session = session

    @store_call('Erro ao verificar identificador da requisição.')
    def exists_with_value(self, column: str, value: str, for_update: bool = False) -> bool:
        col = IDENTIFIER_COLUMNS.get(column)
        if col is None:
            raise ValueError(f'{column} is not an identifier column')
        stmt = select(Requisition.id).where(col == value).limit(1)
        if for_update:
            # locking read sees rows committed after this transaction's snapshot
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).first() is not None

    @store_call('Erro ao criar requisição.')
    def insert(self, requisition: Requisition) -> Requisition:
        """Flush a new requisition inside a savepoint.

        A unique violation on a generated identifier raises DuplicateIdentifier so the
        caller can draw fresh values; any other integrity failure propagates as StoreError.
        """
        try:
            with self.session.begin_nested():
                self.session.add(requisition)
                self.session.flush()
        except IntegrityError as e:
            if duplicate_identifier_column(e) or self._identifier_taken(requisition):
                raise DuplicateIdentifier(requisition.public_code) from e
            raise
        return requisition

    def _identifier_taken(self, requisition: Requisition) -> bool:
        if self.exists_with_value('codigo_publico', requisition.public_code, for_update=True):
            return True
        return bool(
            requisition.formatted_number
            and self.exists_with_value('numero_formatado', requisition.formatted_number, for_update=True)
        )

    @store_call('Erro ao buscar requisição.')
    def get(self, requisition_id: int, for_update: bool = False) -> Optional[Requisition]:
        stmt = select(Requisition).where(Requisition.id == requisition_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    @store_call('Erro ao atualizar status.')
    def update_status(self, requisition: Requisition, new_status: str) -> Requisition:
        requisition.status = new_status
        requisition.updated_at = func.now()
        self.session.flush()
        return requisition

    @store_call('Erro ao registrar assinatura.')
    def add_signature(self, record: SignatureRecord) -> SignatureRecord:
        self.session.add(record)
        self.session.flush()
        return record

    @store_call('Erro ao validar requisição.')
    def add_validation(self, record: ValidationRecord) -> ValidationRecord:
        self.session.add(record)
        self.session.flush()
        return record

    def _detail_query(self):
        issuer = aliased(User)
        return (
            select(Requisition, issuer.name, issuer.cpf, Sector.name)
            .outerjoin(issuer, issuer.id == Requisition.issuer_id)
            .outerjoin(Sector, Sector.id == Requisition.sector_id)
        )

    @staticmethod
    def _detail_row(row) -> Dict[str, Any]:
        requisition, issuer_name, issuer_cpf, sector_name = row
        return {
            'requisition': requisition,
            'issuer_name': issuer_name,
            'issuer_cpf': issuer_cpf,
            'sector_name': sector_name,
        }

    @store_call('Erro ao buscar dados da requisição.')
    def get_detail(self, requisition_id: int) -> Optional[Dict[str, Any]]:
        row = self.session.execute(self._detail_query().where(Requisition.id == requisition_id).limit(1)).first()
        if row is None:
            return None
        detail = self._detail_row(row)
        rep = self.session.execute(
            select(User.name, User.cpf)
            .join(StatusLogEntry, StatusLogEntry.user_id == User.id)
            .where(
                StatusLogEntry.requisition_id == requisition_id,
                StatusLogEntry.new_status.in_(REPRESENTATIVE_STATUSES),
            )
            .order_by(StatusLogEntry.created_at.desc(), StatusLogEntry.id.desc())
            .limit(1)
        ).first()
        detail['representative_name'] = rep[0] if rep else None
        detail['representative_cpf'] = rep[1] if rep else None
        return detail

    @store_call('Erro ao listar requisições.')
    def list(self, filters: Optional[Dict[str, Any]] = None, ascending: bool = False) -> List[Dict[str, Any]]:
        q = apply_filters(self._detail_query(), LIST_FILTERS, filters or {})
        if ascending:
            q = q.order_by(Requisition.created_at.asc(), Requisition.id.asc())
        else:
            q = q.order_by(Requisition.created_at.desc(), Requisition.id.desc())
        return [self._detail_row(r) for r in self.session.execute(q).all()]

    @store_call('Erro ao buscar histórico da requisição.')
    def history(self, requisition_id: int) -> List[StatusLogEntry]:
        stmt = (
            select(StatusLogEntry)
            .where(StatusLogEntry.requisition_id == requisition_id)
            .order_by(StatusLogEntry.created_at.asc(), StatusLogEntry.id.asc())
        )
        return list(self.session.execute(stmt).scalars())

    @store_call('Erro ao buscar assinaturas da requisição.')
    def signatures(self, requisition_id: int) -> List[SignatureRecord]:
        stmt = select(SignatureRecord).where(SignatureRecord.requisition_id == requisition_id).order_by(SignatureRecord.id.asc())
        return list(self.session.execute(stmt).scalars())

    @store_call('Erro ao buscar validações da requisição.')
    def validations(self, requisition_id: int) -> List[ValidationRecord]:
        stmt = select(ValidationRecord).where(ValidationRecord.requisition_id == requisition_id).order_by(ValidationRecord.id.asc())
        return list(self.session.execute(stmt).scalars())

__all__ = ['RequisitionRepository', 'DuplicateIdentifier', 'IDENTIFIER_COLUMNS', 'duplicate_identifier_column']
