# api_client.py

import logging
from typing import Any, Callable, Iterable, List, Optional

import requests

from config import API_BASE_URL, REQUEST_TIMEOUT_SECONDS, DEFAULT_PAGE_SIZE
from models import (
    Company, Program, EvaluationDraft, EvaluationRecord, EvaluationResults, LoginResult,
)

logger = logging.getLogger(__name__)


# --- Erros ---
class PortalError(Exception):
    """Erro base do portal."""


class ValidationError(PortalError):
    """Dados do formulário inválidos; nunca chegam a ser enviados à API."""

    def __init__(self, message, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class ApiError(PortalError):
    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class SessionExpiredError(ApiError):
    """Token ausente ou expirado (HTTP 401)."""


def _error_message(payload, default):
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            if payload.get(key):
                return str(payload[key])
    return default


def _extract_items(data, *keys) -> list:
    """A API devolve listas nuas ou embrulhadas em {"data": [...]} / {"avaliacoes": [...]}."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


class ApiClient:
    """
    Cliente HTTP fino para a API do portal.

    O token é pedido a ``token_provider`` em cada pedido. Um 401 chama
    ``on_session_expired`` (registado uma vez pela aplicação) e levanta
    SessionExpiredError; este módulo nunca navega entre páginas.
    """

    def __init__(self, base_url: str = API_BASE_URL,
                 token_provider: Optional[Callable[[], Optional[str]]] = None,
                 on_session_expired: Optional[Callable[[], None]] = None,
                 session: Optional[requests.Session] = None,
                 timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider or (lambda: None)
        self.on_session_expired = on_session_expired
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Falha de rede em %s %s: %s", method, path, e)
            raise ApiError("Não foi possível contactar o servidor. Verifique a sua ligação.") from e

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if response.status_code == 401:
            logger.warning("401 em %s %s; sessão expirada", method, path)
            if self.on_session_expired:
                self.on_session_expired()
            raise SessionExpiredError(_error_message(payload, "Sessão expirada. Faça login novamente."),
                                      status_code=401, payload=payload)

        if not response.ok:
            logger.error("API error: %s %s -> %s %s", method, path, response.status_code, payload)
            raise ApiError(_error_message(payload, f"Erro {response.status_code} ao comunicar com a API."),
                           status_code=response.status_code, payload=payload)
        return payload

    def get(self, path, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.request("PUT", path, json=json, **kwargs)


# --- Autenticação ---
def login(client: ApiClient, email: str, password: str, company_id: Optional[int] = None) -> LoginResult:
    data = client.post("/api/auth/login", json={"email": email, "senha": password, "empresa_id": company_id}) or {}
    body = data.get("data") or {}
    user = body.get("user") or {}
    company = body.get("company") or {}
    token = data.get("token") or body.get("token")
    if not token or user.get("id") is None:
        raise ApiError(_error_message(data, "Resposta de login sem token ou utilizador."), payload=data)
    return LoginResult(
        token=token,
        user_id=user["id"],
        email=user.get("email") or email,
        company_id=company.get("id", company_id),
        company_name=company.get("name") or company.get("nome"),
    )


def verify(client: ApiClient) -> dict:
    return client.get("/api/auth/verify") or {}


def verify_reset_token(client: ApiClient, token: str, email: str) -> bool:
    data = client.post("/api/auth/verify-reset-token", json={"token": token, "email": email}) or {}
    return bool(data.get("valid"))


MIN_PASSWORD_LENGTH = 6


def check_new_password(new_password: str, confirmation: str) -> None:
    if not new_password or not confirmation:
        raise ValidationError("Por favor, preencha todos os campos.", ["Nova senha", "Confirmar senha"])
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres.", ["Nova senha"])
    if new_password != confirmation:
        raise ValidationError("As senhas não coincidem.", ["Confirmar senha"])


def reset_password(client: ApiClient, token: str, email: str, new_password: str) -> dict:
    return client.post("/api/auth/reset-password",
                       json={"token": token, "email": email, "newPassword": new_password}) or {}


# --- Empresas e PDLs ---
def list_companies(client: ApiClient, query: Optional[str] = None) -> List[Company]:
    params = {"q": query} if query else None
    data = client.get("/api/companies", params=params)
    return [Company.model_validate(item) for item in _extract_items(data, "data")]


def list_company_programs(client: ApiClient, company_id: int) -> List[Program]:
    data = client.get(f"/api/pdl/company/{company_id}")
    return [Program.model_validate(item) for item in _extract_items(data, "data")]


# --- Avaliações ---
def create_evaluation(client: ApiClient, draft: EvaluationDraft) -> dict:
    missing = draft.missing_required()
    if missing:
        raise ValidationError("Por favor, preencha todos os campos obrigatórios: " + ", ".join(missing), missing)
    if draft.recommendation_score is not None and not 0 <= draft.recommendation_score <= 10:
        raise ValidationError("A nota de recomendação deve estar entre 0 e 10.", ["Nota de Recomendação"])
    return client.post("/api/pdl-evaluation", json=draft.to_payload()) or {}


def _parse_records(items: Iterable[dict]) -> List[EvaluationRecord]:
    return [EvaluationRecord.model_validate(item) for item in items]


def list_evaluations_by_program(client: ApiClient, program_id: int,
                                limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> List[EvaluationRecord]:
    data = client.get(f"/api/pdl-evaluation/pdl/{program_id}", params={"limit": limit, "offset": offset})
    return _parse_records(_extract_items(data, "avaliacoes", "data"))


def list_evaluations_by_user(client: ApiClient, user_id: int) -> List[EvaluationRecord]:
    data = client.get(f"/api/pdl-evaluation/user/{user_id}")
    return _parse_records(_extract_items(data, "avaliacoes", "data"))


def list_results_by_user(client: ApiClient, user_id: int) -> List[EvaluationRecord]:
    data = client.get(f"/api/pdl-evaluation/resultados/{user_id}")
    return _parse_records(_extract_items(data, "resultados", "data"))


def fetch_evaluations(client: ApiClient, user_id: int, program_id: Optional[int] = None) -> List[EvaluationRecord]:
    """
    Avaliações do PDL (ou de todo o utilizador, sem PDL), recorrendo ao
    endpoint de resultados quando o principal falha.
    """
    try:
        if program_id is not None:
            return list_evaluations_by_program(client, program_id)
        return list_evaluations_by_user(client, user_id)
    except SessionExpiredError:
        raise
    except ApiError as e:
        logger.warning("Endpoint principal de avaliações falhou (%s); a tentar resultados/%s", e, user_id)

    records = list_results_by_user(client, user_id)
    if program_id is not None:
        records = [r for r in records if r.program_id == program_id]
    return records


def update_evaluation_results(client: ApiClient, evaluation_id: int, results: EvaluationResults) -> dict:
    """Substitui todos os campos de resultado da avaliação (não faz merge)."""
    return client.put(f"/api/pdl-evaluation/resultado/{evaluation_id}", json=results.to_payload()) or {}


def get_user_report(client: ApiClient, user_id: int) -> List[EvaluationRecord]:
    data = client.get(f"/api/pdl-evaluation/relatorio/{user_id}") or {}
    if isinstance(data, dict) and data.get("success") is False:
        return []
    return _parse_records(_extract_items(data, "relatorio", "data"))
