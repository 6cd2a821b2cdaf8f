# session_store.py

import base64
import binascii
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, MutableMapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import (
    TOKEN_KEY, SESSION_KEY, SELECTED_PROGRAM_KEY, SELECTED_EVALUATION_KEY,
    REMEMBER_ME_KEY, LAST_ACTIVITY_KEY, SESSION_TIMEOUT_MINUTES, REMEMBER_ME_DAYS,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# --- Esquemas do contexto guardado no cliente ---
class StoredContext(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SessionContext(StoredContext):
    email: str
    user_id: int
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    logged_at: datetime


class SelectedProgram(StoredContext):
    id: int
    name: str
    company_name: Optional[str] = None
    selected_at: datetime = Field(default_factory=datetime.now)


class SelectedEvaluation(StoredContext):
    id: int
    program_id: Optional[int] = None
    program_name: Optional[str] = None
    topic: Optional[str] = None
    session_date: Optional[str] = None
    learnings: Optional[str] = None
    commitments: Optional[str] = None
    company_name: Optional[str] = None
    selected_at: datetime = Field(default_factory=datetime.now)
    is_edit: bool = False
    existing_data: Optional[dict] = None


class RememberMe(StoredContext):
    email_encoded: str
    company: Optional[str] = None
    expires_at: datetime


def encode_email(email: str) -> str:
    """Ofuscação reversível (base64); não é uma medida de segurança."""
    return base64.urlsafe_b64encode(email.encode("utf-8")).decode("ascii")


def decode_email(encoded: str) -> Optional[str]:
    try:
        return base64.urlsafe_b64decode(encoded.encode("ascii")).decode("utf-8") or None
    except (binascii.Error, UnicodeError, ValueError):
        return None


class ContextStore:
    """
    Contexto tipado partilhado entre páginas.

    Os valores ficam guardados como JSON num MutableMapping (por omissão o
    ``st.session_state``) e são validados na leitura: um valor que não
    respeite o esquema é apagado e a leitura devolve ``None``, para que a
    página redirecione para um sítio seguro.
    """

    def __init__(self, backend: Optional[MutableMapping] = None):
        if backend is None:
            import streamlit as st
            backend = st.session_state
        self.backend = backend

    # --- Acesso genérico ---
    def _read(self, key: str, model: Type[T]) -> Optional[T]:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            return model.model_validate(data)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Contexto '%s' inválido, a descartar: %s", key, e)
            self.remove(key)
            return None

    def _write(self, key: str, value: BaseModel) -> None:
        self.backend[key] = value.model_dump_json()

    def remove(self, key: str) -> None:
        if key in self.backend:
            del self.backend[key]

    # --- Token ---
    @property
    def token(self) -> Optional[str]:
        token = self.backend.get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    @token.setter
    def token(self, value: Optional[str]) -> None:
        if value:
            self.backend[TOKEN_KEY] = value
        else:
            self.remove(TOKEN_KEY)

    # --- Sessão ---
    def get_session(self) -> Optional[SessionContext]:
        return self._read(SESSION_KEY, SessionContext)

    def set_session(self, session: SessionContext) -> None:
        self._write(SESSION_KEY, session)
        self.touch(session.logged_at)

    def current_user_id(self) -> Optional[int]:
        session = self.get_session()
        return session.user_id if session else None

    def start_session(self, token: str, session: SessionContext) -> None:
        self.token = token
        self.set_session(session)

    def clear_session(self) -> None:
        """Limpa token, sessão e seleções; mantém o 'Lembrar-me'."""
        for key in (TOKEN_KEY, SESSION_KEY, SELECTED_PROGRAM_KEY, SELECTED_EVALUATION_KEY, LAST_ACTIVITY_KEY):
            self.remove(key)

    def touch(self, now: Optional[datetime] = None) -> None:
        self.backend[LAST_ACTIVITY_KEY] = (now or datetime.now()).isoformat()

    def is_session_expired(self, now: Optional[datetime] = None, timeout_minutes: int = SESSION_TIMEOUT_MINUTES) -> bool:
        """Verifica se a sessão expirou por inatividade; se não, regista a atividade."""
        now = now or datetime.now()
        last = self.backend.get(LAST_ACTIVITY_KEY)
        if last:
            try:
                last_activity = datetime.fromisoformat(last)
            except (TypeError, ValueError):
                last_activity = None
            if last_activity and now - last_activity > timedelta(minutes=timeout_minutes):
                self.clear_session()
                return True
        self.touch(now)
        return False

    # --- PDL selecionado ---
    def get_selected_program(self) -> Optional[SelectedProgram]:
        return self._read(SELECTED_PROGRAM_KEY, SelectedProgram)

    def set_selected_program(self, program: SelectedProgram) -> None:
        self._write(SELECTED_PROGRAM_KEY, program)

    def selected_program_id(self) -> Optional[int]:
        selected = self.get_selected_program()
        return selected.id if selected else None

    # --- Avaliação selecionada ---
    def get_selected_evaluation(self) -> Optional[SelectedEvaluation]:
        return self._read(SELECTED_EVALUATION_KEY, SelectedEvaluation)

    def set_selected_evaluation(self, evaluation: SelectedEvaluation) -> None:
        self._write(SELECTED_EVALUATION_KEY, evaluation)

    def clear_selected_evaluation(self) -> None:
        self.remove(SELECTED_EVALUATION_KEY)

    # --- Lembrar-me ---
    def remember(self, email: str, company: Optional[str] = None, now: Optional[datetime] = None,
                  days: int = REMEMBER_ME_DAYS) -> None:
        now = now or datetime.now()
        self._write(REMEMBER_ME_KEY, RememberMe(
            email_encoded=encode_email(email), company=company, expires_at=now + timedelta(days=days),
        ))

    def forget(self) -> None:
        self.remove(REMEMBER_ME_KEY)

    def get_remembered(self, now: Optional[datetime] = None) -> Optional[tuple]:
        """(email, empresa) guardados pelo 'Lembrar-me', ou None se expirado/inválido."""
        remembered = self._read(REMEMBER_ME_KEY, RememberMe)
        if remembered is None:
            return None
        if (now or datetime.now()) >= remembered.expires_at:
            self.forget()
            return None
        email = decode_email(remembered.email_encoded)
        if not email:
            self.forget()
            return None
        return email, remembered.company


class PageLoadGuard:
    """
    Geração de carregamento por página, associada ao contexto em que o pedido
    foi feito (PDL selecionado, utilizador). Um resultado só é aplicado se,
    no fim do pedido, a geração e o contexto ainda forem os mesmos; caso
    contrário é descartado.
    """

    def __init__(self, backend: MutableMapping, page: str, context: Optional[Callable[[], Any]] = None):
        self.backend = backend
        self.key = f"ic2.loadGeneration.{page}"
        self.context = context or (lambda: None)

    def begin(self) -> Tuple[int, Any]:
        generation = int(self.backend.get(self.key, 0)) + 1
        self.backend[self.key] = generation
        return generation, self.context()

    def is_current(self, ticket: Tuple[int, Any]) -> bool:
        generation, context = ticket
        return self.backend.get(self.key) == generation and self.context() == context

    def invalidate(self) -> None:
        self.backend[self.key] = int(self.backend.get(self.key, 0)) + 1

    def apply(self, ticket: Tuple[int, Any], value: Any, default: Any = None) -> Any:
        if self.is_current(ticket):
            return value
        logger.info("Resultado tardio descartado (%s, pedido %s)", self.key, ticket)
        return default
