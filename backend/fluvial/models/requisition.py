from __future__ import annotations
from datetime import date, time
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Date, Time, DateTime, ForeignKey, text

from .directory import Base


class Requisition(Base):
    __tablename__ = 'requisicoes'
    # Status constants (wire/storage values)
    STATUS_PENDING = 'PENDENTE'
    STATUS_AUTHORIZED = 'AUTORIZADA'
    STATUS_APPROVED = 'APROVADA'
    STATUS_REJECTED = 'REPROVADA'
    STATUS_CANCELLED = 'CANCELADA'
    STATUS_USED = 'UTILIZADA'
    ALL_STATUSES = (
        STATUS_PENDING,
        STATUS_AUTHORIZED,
        STATUS_APPROVED,
        STATUS_REJECTED,
        STATUS_CANCELLED,
        STATUS_USED,
    )
    PUBLIC_CODE_LENGTH = 10
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    public_code: Mapped[str] = mapped_column('codigo_publico', String(PUBLIC_CODE_LENGTH), unique=True, nullable=False)
    formatted_number: Mapped[Optional[str]] = mapped_column('numero_formatado', String(16), unique=True, nullable=True)
    issuer_id: Mapped[int] = mapped_column('emissor_id', ForeignKey('usuarios.id'), nullable=False, index=True)
    sector_id: Mapped[Optional[int]] = mapped_column('setor_id', ForeignKey('setores.id'), nullable=True)
    passenger_name: Mapped[str] = mapped_column('passageiro_nome', String(150), nullable=False)
    passenger_cpf: Mapped[Optional[str]] = mapped_column('passageiro_cpf', String(14))
    passenger_registration: Mapped[Optional[str]] = mapped_column('passageiro_matricula', String(40))
    origin: Mapped[str] = mapped_column('origem', String(120), nullable=False)
    destination: Mapped[str] = mapped_column('destino', String(120), nullable=False)
    departure_date: Mapped[date] = mapped_column('data_ida', Date, nullable=False, index=True)
    return_date: Mapped[Optional[date]] = mapped_column('data_volta', Date)
    boarding_time: Mapped[Optional[time]] = mapped_column('horario_embarque', Time)
    justification: Mapped[Optional[str]] = mapped_column('justificativa', Text)
    notes: Mapped[Optional[str]] = mapped_column('observacoes', Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), index=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

# Workflow A: PENDENTE -> AUTORIZADA | CANCELADA
# Workflow B: PENDENTE -> APROVADA | REPROVADA, APROVADA -> UTILIZADA


class StatusLogEntry(Base):
    """Append-only audit trail; one row per accepted transition (creation included)."""
    __tablename__ = 'requisicao_status_log'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    requisition_id: Mapped[int] = mapped_column('requisicao_id', ForeignKey('requisicoes.id'), nullable=False, index=True)
    previous_status: Mapped[Optional[str]] = mapped_column('status_anterior', String(20), nullable=True)
    new_status: Mapped[str] = mapped_column('status_novo', String(20), nullable=False)
    user_id: Mapped[int] = mapped_column('usuario_id', Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column('observacao', Text)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))


class SignatureRecord(Base):
    __tablename__ = 'assinaturas_representante'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    requisition_id: Mapped[int] = mapped_column('requisicao_id', ForeignKey('requisicoes.id'), nullable=False, index=True)
    representative_id: Mapped[int] = mapped_column('representante_id', Integer, nullable=False)
    action: Mapped[str] = mapped_column('acao', String(20), nullable=False)
    rejection_reason: Mapped[Optional[str]] = mapped_column('motivo_recusa', Text)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))


class ValidationRecord(Base):
    __tablename__ = 'validacoes_transportador'
    TYPE_BOARDING = 'EMBARQUE'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    requisition_id: Mapped[int] = mapped_column('requisicao_id', ForeignKey('requisicoes.id'), nullable=False, index=True)
    carrier_id: Mapped[int] = mapped_column('transportador_id', Integer, nullable=False)
    validation_type: Mapped[str] = mapped_column('tipo_validacao', String(20), nullable=False, default=TYPE_BOARDING)
    scanned_code: Mapped[str] = mapped_column('codigo_lido', String(64), nullable=False)
    location: Mapped[Optional[str]] = mapped_column('local_validacao', String(120))
    note: Mapped[Optional[str]] = mapped_column('observacao', Text)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))
