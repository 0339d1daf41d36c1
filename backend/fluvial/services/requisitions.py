from __future__ import annotations
"""Requisition lifecycle: creation, representative decisions and carrier validation.

Two transition vocabularies share the same entity:

    Workflow A (authorize/cancel):  PENDENTE -> AUTORIZADA | CANCELADA
    Workflow B (sign, validate):    PENDENTE -> APROVADA | REPROVADA, APROVADA -> UTILIZADA

Each operation runs as one unit of work: the row is read FOR UPDATE, the primary
write is flushed, the status log entry is appended in a savepoint, then the session
commits. Status log failures are soft: they are logged and never change the result.

By default transitions are permissive (any status may be authorized, cancelled,
signed or validated). With `strict=True` the combined graph below is enforced.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fluvial.errors import GenerationError, NotFoundError, StoreError, ValidationError, ValidationMismatchError
from fluvial.models import Requisition, SignatureRecord, ValidationRecord, StatusLogEntry
from fluvial.repositories.requisitions import RequisitionRepository, DuplicateIdentifier
from fluvial.services.identifiers import IdentifierGenerator, DEFAULT_MAX_ATTEMPTS
from fluvial.services.status_log import StatusLogWriter, LogWriteResult
from fluvial.utils.fsm import TransitionValidator
from fluvial.utils.validation import is_blank, parse_date, parse_time, parse_id

logger = logging.getLogger(__name__)

AUTHORIZE_FSM = TransitionValidator({
    Requisition.STATUS_PENDING: {Requisition.STATUS_AUTHORIZED, Requisition.STATUS_CANCELLED},
})
SIGN_FSM = TransitionValidator({
    Requisition.STATUS_PENDING: {Requisition.STATUS_APPROVED, Requisition.STATUS_REJECTED},
    Requisition.STATUS_APPROVED: {Requisition.STATUS_USED},
})
REQUISITION_FSM = AUTHORIZE_FSM.merged(SIGN_FSM)

APPROVE_ACTIONS = frozenset({'APROVAR', 'APPROVE'})

NOTE_CREATED = 'Criação da requisição'
NOTE_AUTHORIZED = 'Autorização pelo representante'
NOTE_CANCELLED = 'Cancelamento pelo representante'


@dataclass
class RequisitionDraft:
    issuer_id: Any
    passenger_name: Optional[str]
    origin: Optional[str]
    destination: Optional[str]
    departure_date: Any
    passenger_cpf: Optional[str] = None
    passenger_registration: Optional[str] = None
    sector_id: Any = None
    return_date: Any = None
    boarding_time: Any = None
    justification: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class TransitionResult:
    id: int
    status: str
    previous_status: Optional[str] = None
    changed: bool = True
    message: Optional[str] = None
    public_code: Optional[str] = None
    formatted_number: Optional[str] = None
    log: Optional[LogWriteResult] = field(default=None, repr=False)


def _or_none(value):
    return None if is_blank(value) else value


class RequisitionService:
    def __init__(
        self,
        session: Session,
        generator: Optional[IdentifierGenerator] = None,
        strict: bool = False,
        verify_scanned_code: bool = False,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        today: Callable[[], date] = date.today,
    ):
        self.session = session
        self.repo = RequisitionRepository(session)
        self.status_log = StatusLogWriter(session)
        self.generator = generator or IdentifierGenerator(self.repo, max_attempts=max_attempts)
        self.strict = strict
        self.verify_scanned_code = verify_scanned_code
        self.max_attempts = max(1, max_attempts)
        self.today = today

    @contextmanager
    def _unit_of_work(self, message: str):
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(message) from e
        except Exception:
            self.session.rollback()
            raise

    def _load_for_update(self, requisition_id: int) -> Requisition:
        requisition = self.repo.get(requisition_id, for_update=True)
        if requisition is None:
            raise NotFoundError('Requisição não encontrada.')
        return requisition

    def _check(self, current: str, target: str):
        if self.strict:
            REQUISITION_FSM.assert_can_transition(current, target)

    def _log(self, requisition_id: int, previous: Optional[str], new: str, user_id: int, note: Optional[str]) -> LogWriteResult:
        result = self.status_log.append(requisition_id, previous, new, user_id, note)
        if not result.ok:
            logger.warning('requisicao %s is %s but its status log entry was not written', requisition_id, new)
        return result

    # ---------- creation ---------- #

    def create(self, draft: RequisitionDraft) -> TransitionResult:
        if is_blank(draft.issuer_id):
            raise ValidationError('Emissor não informado (emissor_id é obrigatório).')
        if any(is_blank(v) for v in (draft.passenger_name, draft.origin, draft.destination, draft.departure_date)):
            raise ValidationError('Preencha passageiro_nome, origem, destino e data_ida para criar a requisição.')
        issuer_id = parse_id(draft.issuer_id, 'emissor_id')
        values = dict(
            issuer_id=issuer_id,
            sector_id=parse_id(draft.sector_id, 'setor_id') if not is_blank(draft.sector_id) else None,
            passenger_name=str(draft.passenger_name).strip(),
            passenger_cpf=_or_none(draft.passenger_cpf),
            passenger_registration=_or_none(draft.passenger_registration),
            origin=str(draft.origin).strip(),
            destination=str(draft.destination).strip(),
            departure_date=parse_date(draft.departure_date, 'data_ida'),
            return_date=parse_date(draft.return_date, 'data_volta'),
            boarding_time=parse_time(draft.boarding_time, 'horario_embarque'),
            justification=_or_none(draft.justification),
            notes=_or_none(draft.notes),
            status=Requisition.STATUS_PENDING,
        )
        year = self.today().year
        with self._unit_of_work('Erro ao criar requisição.'):
            requisition = None
            for attempt in range(1, self.max_attempts + 1):
                candidate = Requisition(
                    public_code=self.generator.generate_unique_public_code(),
                    formatted_number=self.generator.generate_unique_formatted_number(year),
                    **values,
                )
                try:
                    requisition = self.repo.insert(candidate)
                    break
                except DuplicateIdentifier:
                    logger.info('identifier taken at insert time (attempt %d), drawing again', attempt)
            if requisition is None:
                raise GenerationError()
            log = self._log(requisition.id, None, Requisition.STATUS_PENDING, issuer_id, NOTE_CREATED)
        logger.info('requisicao %s created by %s (%s)', requisition.id, issuer_id, requisition.public_code)
        return TransitionResult(
            id=requisition.id,
            status=requisition.status,
            public_code=requisition.public_code,
            formatted_number=requisition.formatted_number,
            log=log,
        )

    # ---------- workflow A ---------- #

    def _set_status_once(self, requisition_id: int, actor_id: Any, target: str, note: Optional[str], default_note: str, messages: Dict[str, str]) -> TransitionResult:
        if is_blank(actor_id):
            raise ValidationError('usuario_id (validador) é obrigatório.')
        actor = parse_id(actor_id, 'usuario_id')
        with self._unit_of_work('Erro ao atualizar status da requisição.'):
            requisition = self._load_for_update(requisition_id)
            previous = requisition.status
            if previous == target:
                logger.info('requisicao %s already %s, nothing to do', requisition_id, target)
                return TransitionResult(id=requisition.id, status=target, previous_status=previous, changed=False, message=messages['noop'])
            self._check(previous, target)
            self.repo.update_status(requisition, target)
            log = self._log(requisition.id, previous, target, actor, _or_none(note) or default_note)
        logger.info('requisicao %s %s -> %s by %s', requisition_id, previous, target, actor)
        return TransitionResult(id=requisition.id, status=target, previous_status=previous, message=messages['done'], log=log)

    def authorize(self, requisition_id: int, actor_id: Any, note: Optional[str] = None) -> TransitionResult:
        return self._set_status_once(
            requisition_id, actor_id, Requisition.STATUS_AUTHORIZED, note, NOTE_AUTHORIZED,
            {'noop': 'Já estava autorizada.', 'done': 'Requisição autorizada com sucesso.'},
        )

    def cancel(self, requisition_id: int, actor_id: Any, note: Optional[str] = None) -> TransitionResult:
        return self._set_status_once(
            requisition_id, actor_id, Requisition.STATUS_CANCELLED, note, NOTE_CANCELLED,
            {'noop': 'Já estava cancelada.', 'done': 'Requisição cancelada com sucesso.'},
        )

    # ---------- workflow B ---------- #

    def sign(self, requisition_id: int, representative_id: Any, action: Any, rejection_reason: Optional[str] = None) -> TransitionResult:
        """Record a representative decision.

        `APROVAR` or `APPROVE` (exact match) approves, any other action rejects.
        400 when representative or action is missing, 404 for an unknown requisition.
        """
        if is_blank(representative_id) or is_blank(action):
            raise ValidationError('Dados incompletos.')
        representative = parse_id(representative_id, 'representante_id')
        # Only the exact approval tokens approve, anything else is a rejection
        target = Requisition.STATUS_APPROVED if isinstance(action, str) and action in APPROVE_ACTIONS else Requisition.STATUS_REJECTED
        with self._unit_of_work('Erro ao atualizar status.'):
            requisition = self._load_for_update(requisition_id)
            previous = requisition.status
            self._check(previous, target)
            self.repo.update_status(requisition, target)
            self.repo.add_signature(SignatureRecord(
                requisition_id=requisition.id,
                representative_id=representative,
                action=target,
                rejection_reason=_or_none(rejection_reason),
            ))
            log = self._log(requisition.id, previous, target, representative, _or_none(rejection_reason))
        logger.info('requisicao %s signed %s -> %s by %s', requisition_id, previous, target, representative)
        return TransitionResult(id=requisition.id, status=target, previous_status=previous, log=log)

    def validate(
        self,
        requisition_id: int,
        carrier_id: Any,
        scanned_code: Optional[str],
        validation_type: Optional[str] = None,
        location: Optional[str] = None,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """Record a carrier validation and mark the requisition USED.

        400 when carrier or scanned code is missing, 404 for an unknown requisition,
        422 when scanned code verification is enabled and the code does not match.
        """
        if is_blank(carrier_id) or is_blank(scanned_code):
            raise ValidationError('Dados incompletos.')
        carrier = parse_id(carrier_id, 'transportador_id')
        scanned = str(scanned_code).strip()
        target = Requisition.STATUS_USED
        with self._unit_of_work('Erro ao validar requisição.'):
            requisition = self._load_for_update(requisition_id)
            if self.verify_scanned_code and scanned.upper() != requisition.public_code:
                raise ValidationMismatchError()
            previous = requisition.status
            self._check(previous, target)
            self.repo.add_validation(ValidationRecord(
                requisition_id=requisition.id,
                carrier_id=carrier,
                validation_type=_or_none(validation_type) or ValidationRecord.TYPE_BOARDING,
                scanned_code=scanned,
                location=_or_none(location),
                note=_or_none(note),
            ))
            self.repo.update_status(requisition, target)
            log = self._log(requisition.id, previous, target, carrier, _or_none(note))
        logger.info('requisicao %s validated %s -> %s by %s', requisition_id, previous, target, carrier)
        return TransitionResult(id=requisition.id, status=target, previous_status=previous, log=log)

    # ---------- queries ---------- #

    def get(self, requisition_id: int) -> Dict[str, Any]:
        detail = self.repo.get_detail(requisition_id)
        if detail is None:
            raise NotFoundError('Requisição não encontrada.')
        detail['signatures'] = self.repo.signatures(requisition_id)
        detail['validations'] = self.repo.validations(requisition_id)
        return detail

    def list(self, status: Optional[str] = None, date_from: Any = None, date_to: Any = None, issuer_id: Any = None) -> List[Dict[str, Any]]:
        filters = {
            'status': None if is_blank(status) or status == 'TODOS' else status,
            'date_from': parse_date(date_from, 'data_ini'),
            'date_to': parse_date(date_to, 'data_fim'),
            'issuer_id': None if is_blank(issuer_id) else issuer_id,
        }
        return self.repo.list(filters)

    def list_by_issuer(self, issuer_id: Any) -> List[Dict[str, Any]]:
        return self.repo.list({'issuer_id': parse_id(issuer_id, 'emissor_id')})

    def list_pending(self) -> List[Dict[str, Any]]:
        return self.repo.list({'status': Requisition.STATUS_PENDING}, ascending=True)

    def history(self, requisition_id: int) -> List[StatusLogEntry]:
        if self.repo.get(requisition_id) is None:
            raise NotFoundError('Requisição não encontrada.')
        return self.repo.history(requisition_id)

__all__ = [
    'RequisitionService', 'RequisitionDraft', 'TransitionResult',
    'REQUISITION_FSM', 'AUTHORIZE_FSM', 'SIGN_FSM', 'APPROVE_ACTIONS',
]
