from __future__ import annotations
from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, text
from typing import Optional

Base = declarative_base()


class Sector(Base):
    __tablename__ = 'setores'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column('nome', String(150), nullable=False)


class User(Base):
    __tablename__ = 'usuarios'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column('nome', String(150), nullable=False, index=True)
    login: Mapped[str] = mapped_column(String(80), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column('senha_hash', String(255), nullable=False)
    profile: Mapped[str] = mapped_column('perfil', String(32), nullable=False, index=True)
    cpf: Mapped[Optional[str]] = mapped_column(String(14))
    boat: Mapped[Optional[str]] = mapped_column('barco', String(120))
    sector_id: Mapped[Optional[int]] = mapped_column('setor_id', ForeignKey('setores.id'), nullable=True)
    active: Mapped[bool] = mapped_column('ativo', Boolean, default=True, nullable=False)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))
