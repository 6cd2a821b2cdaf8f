# portal.py

import logging
from datetime import datetime
from typing import Optional

import streamlit as st

from config import (
    APP_NAME, APP_VERSION, LOGIN_PAGE, PROGRAM_DETAIL_PAGE, PROGRAMS_PAGE, SESSION_TIMEOUT_MINUTES,
)
from api_client import ApiClient, ApiError, SessionExpiredError, list_companies
from models import Program
from session_store import ContextStore, SelectedProgram, SessionContext
from slugs import ProgramRoute, build_program_route

logger = logging.getLogger(__name__)

SESSION_EXPIRED_FLAG = "ic2.sessionExpired"
PENDING_ROUTE_KEY = "ic2.pendingRoute"

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def get_store() -> ContextStore:
    return ContextStore(st.session_state)


def _on_session_expired() -> None:
    """Política global para 401: limpa a sessão e marca-a como expirada."""
    get_store().clear_session()
    st.session_state[SESSION_EXPIRED_FLAG] = True


def get_client() -> ApiClient:
    store = get_store()
    return ApiClient(token_provider=lambda: store.token, on_session_expired=_on_session_expired)


def redirect_to_login(message: str = "Sessão expirada. Redirecionando para login...") -> None:
    get_store().clear_session()
    st.session_state.pop(SESSION_EXPIRED_FLAG, None)
    st.warning(message)
    st.switch_page(LOGIN_PAGE)


def handle_api_error(error: ApiError, message: str) -> None:
    """Mostra um erro de API; uma sessão expirada segue sempre para o login."""
    if isinstance(error, SessionExpiredError):
        redirect_to_login()
        return
    logger.error("%s: %s", message, error)
    st.error(f"{message} {error}")


def require_session() -> SessionContext:
    """Bloco de autenticação comum a todas as páginas privadas."""
    store = get_store()
    if st.session_state.pop(SESSION_EXPIRED_FLAG, False):
        redirect_to_login()
    session = store.get_session()
    if session is None or not store.token:
        st.warning("⚠️ Por favor, faça login para acessar.")
        st.page_link(LOGIN_PAGE, label="Ir para o Login", icon="🔑")
        st.stop()
    if store.is_session_expired():
        st.warning(f"Sua sessão expirou por inatividade de {SESSION_TIMEOUT_MINUTES} minutos. Por favor, faça login novamente.")
        st.page_link(LOGIN_PAGE, label="Ir para o Login", icon="🔑")
        st.stop()
    return session


def render_sidebar(session: Optional[SessionContext]) -> None:
    with st.sidebar:
        st.markdown(f"### {APP_NAME}")
        if session:
            st.markdown(f"🔐 Logado como: **{session.email}**")
            if session.company_name:
                st.caption(f"🏢 {session.company_name}")
            if st.button("Logout", width="stretch", type="secondary"):
                get_store().clear_session()
                st.switch_page(LOGIN_PAGE)
        st.caption(f"v{APP_VERSION}")


@st.cache_data(ttl=3600, show_spinner="A carregar as empresas...")
def load_companies(_client: ApiClient):
    """Empresas ativas disponíveis para seleção no login."""
    return [c for c in list_companies(_client) if c.is_selectable]


def open_program_detail(program: Program, company_name: Optional[str]) -> None:
    """Guarda o PDL selecionado e navega para o detalhe pelo slug."""
    store = get_store()
    store.set_selected_program(SelectedProgram(
        id=program.id, name=program.name, company_name=company_name, selected_at=datetime.now(),
    ))
    go_to_program_route(build_program_route(company_name, program.name, program.id))


def go_to_program_route(route: ProgramRoute) -> None:
    st.session_state[PENDING_ROUTE_KEY] = route.query_params
    st.switch_page(PROGRAM_DETAIL_PAGE)


def consume_pending_route() -> Optional[dict]:
    return st.session_state.pop(PENDING_ROUTE_KEY, None)


def back_to_programs(message: Optional[str] = None) -> None:
    if message:
        st.warning(message)
    st.switch_page(PROGRAMS_PAGE)
