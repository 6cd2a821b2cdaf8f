# config.py

import os
import logging
import streamlit as st

logger = logging.getLogger(__name__)


def _read_setting(key, default=None):
    """Lê uma configuração de [app_settings] em secrets.toml, com fallback para variáveis de ambiente."""
    try:
        value = st.secrets.get("app_settings", {}).get(key)
    except Exception as e:
        # Sem secrets.toml (execução fora do `streamlit run`, testes)
        logger.debug("secrets.toml indisponível ao ler %s: %s", key, e)
        value = None
    if value is None:
        value = os.environ.get(f"PDL_{key}", default)
    return value


# --- CONFIGURAÇÃO DA API (lido a partir de secrets.toml ou do ambiente) ---
API_BASE_URL = _read_setting("API_BASE_URL", "https://ic2-backend-production.up.railway.app")
REQUEST_TIMEOUT_SECONDS = float(_read_setting("REQUEST_TIMEOUT_SECONDS", 30))

# --- Configurações da Aplicação ---
APP_NAME = "IC2 Evolutiva"
APP_VERSION = "1.0.0"
SESSION_TIMEOUT_MINUTES = 60
REMEMBER_ME_DAYS = 30
DEFAULT_PAGE_SIZE = 100

# --- Chaves do armazenamento de contexto do cliente ---
TOKEN_KEY = "ic2.token"
SESSION_KEY = "ic2.session"
SELECTED_PROGRAM_KEY = "ic2.selectedPdl"
SELECTED_EVALUATION_KEY = "ic2.selectedAvaliacao"
REMEMBER_ME_KEY = "ic2.rememberMe"
LAST_ACTIVITY_KEY = "ic2.lastActivity"

# --- Rotas ---
COMPANY_ROUTE_SEGMENT = "company"
PROGRAM_ROUTE_SEGMENT = "program"
UNKNOWN_COMPANY_SLUG = "company"
PROGRAM_FALLBACK_PREFIX = "program"

# --- Páginas (caminhos relativos usados em st.switch_page / st.page_link) ---
LOGIN_PAGE = "0_🔑_Login.py"
PROGRAMS_PAGE = "pages/1_📚_PDLs.py"
PROGRAM_DETAIL_PAGE = "pages/2_🏢_Detalhe_do_PDL.py"
LEARNINGS_PAGE = "pages/3_🎓_Aprendizados_e_Compromissos.py"
ACTIONS_PAGE = "pages/4_✅_Ações_Realizadas.py"
RESULTS_PAGE = "pages/5_📝_Ações_e_Resultados.py"
REPORT_PAGE = "pages/6_📄_Relatório.py"
RESET_PASSWORD_PAGE = "pages/7_🔒_Redefinir_Senha.py"

# --- Estado das avaliações ---
STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_LABELS = {
    STATUS_PENDING: "Pendente",
    STATUS_COMPLETED: "Concluída",
}
STATUS_COLORS = {
    STATUS_PENDING: "#ED6C02",
    STATUS_COMPLETED: "#2E7D32",
}
STATUS_ICONS = {
    STATUS_PENDING: "⏳",
    STATUS_COMPLETED: "✅",
}

# --- Cores do relatório PDF (RGB) ---
REPORT_PRIMARY_COLOR = (25, 118, 210)
REPORT_SECONDARY_COLOR = (158, 158, 158)
REPORT_TEXT_COLOR = (33, 33, 33)
REPORT_INFO_BACKGROUND = (248, 249, 250)
