import json
from datetime import datetime, timedelta

from config import LAST_ACTIVITY_KEY, REMEMBER_ME_KEY, SELECTED_PROGRAM_KEY, SESSION_KEY, TOKEN_KEY
from session_store import (
    ContextStore, PageLoadGuard, SelectedEvaluation, SelectedProgram, SessionContext, decode_email, encode_email,
)

NOW = datetime(2024, 5, 10, 9, 0, 0)


def _session():
    return SessionContext(email="ana@empresa.pt", user_id=12, company_id=3, company_name="Empresa Ação", logged_at=NOW)


def test_session_round_trip():
    backend = {}
    store = ContextStore(backend)
    store.start_session("tok-123", _session())

    assert store.token == "tok-123"
    assert store.get_session() == _session()
    assert isinstance(backend[SESSION_KEY], str)
    assert backend[LAST_ACTIVITY_KEY] == NOW.isoformat()


def test_invalid_json_is_discarded():
    backend = {SESSION_KEY: "{not json"}
    store = ContextStore(backend)
    assert store.get_session() is None
    assert SESSION_KEY not in backend


def test_value_not_matching_schema_is_discarded():
    backend = {SELECTED_PROGRAM_KEY: json.dumps({"name": "Sem id"})}
    store = ContextStore(backend)
    assert store.get_selected_program() is None
    assert SELECTED_PROGRAM_KEY not in backend


def test_selected_program_and_evaluation():
    store = ContextStore({})
    store.set_selected_program(SelectedProgram(id=7, name="Liderança", company_name="Empresa", selected_at=NOW))
    store.set_selected_evaluation(SelectedEvaluation(
        id=99, program_id=7, program_name="Liderança", is_edit=True,
        existing_data={"action_feedback": "Fiz reuniões"}, selected_at=NOW,
    ))

    assert store.get_selected_program().id == 7
    evaluation = store.get_selected_evaluation()
    assert evaluation.is_edit is True
    assert evaluation.existing_data == {"action_feedback": "Fiz reuniões"}

    store.clear_selected_evaluation()
    assert store.get_selected_evaluation() is None
    assert store.get_selected_program() is not None


def test_clear_session_keeps_remember_me():
    backend = {}
    store = ContextStore(backend)
    store.start_session("tok", _session())
    store.set_selected_program(SelectedProgram(id=1, name="X", selected_at=NOW))
    store.remember("ana@empresa.pt", "3", now=NOW)

    store.clear_session()

    assert store.token is None
    assert store.get_session() is None
    assert store.get_selected_program() is None
    assert REMEMBER_ME_KEY in backend
    assert TOKEN_KEY not in backend


def test_remember_me_round_trip_and_expiry():
    store = ContextStore({})
    store.remember("ana@empresa.pt", "3", now=NOW, days=30)

    assert store.get_remembered(now=NOW + timedelta(days=29)) == ("ana@empresa.pt", "3")
    assert store.get_remembered(now=NOW + timedelta(days=30)) is None
    # Expirado é apagado
    assert store.get_remembered(now=NOW) is None


def test_email_is_not_stored_in_clear():
    backend = {}
    ContextStore(backend).remember("ana@empresa.pt", now=NOW)
    assert "ana@empresa.pt" not in backend[REMEMBER_ME_KEY]
    assert decode_email(encode_email("ana@empresa.pt")) == "ana@empresa.pt"
    assert decode_email("%%%") is None


def test_session_timeout():
    store = ContextStore({})
    store.start_session("tok", _session())

    assert store.is_session_expired(now=NOW + timedelta(minutes=30), timeout_minutes=60) is False
    # A atividade anterior renovou o prazo
    assert store.is_session_expired(now=NOW + timedelta(minutes=89), timeout_minutes=60) is False
    assert store.is_session_expired(now=NOW + timedelta(minutes=200), timeout_minutes=60) is True
    assert store.token is None


def test_page_load_guard_discards_result_when_program_changes_during_fetch():
    backend = {}
    store = ContextStore(backend)
    store.set_selected_program(SelectedProgram(id=7, name="Liderança", selected_at=NOW))
    guard = PageLoadGuard(backend, "actions", context=store.selected_program_id)

    ticket = guard.begin()
    store.set_selected_program(SelectedProgram(id=8, name="Gestão", selected_at=NOW))

    assert guard.apply(ticket, ["avaliações do PDL 7"], []) == []


def test_page_load_guard_applies_result_for_unchanged_context():
    backend = {}
    store = ContextStore(backend)
    store.set_selected_program(SelectedProgram(id=7, name="Liderança", selected_at=NOW))
    guard = PageLoadGuard(backend, "actions", context=store.selected_program_id)

    ticket = guard.begin()
    assert guard.apply(ticket, ["avaliações do PDL 7"], []) == ["avaliações do PDL 7"]


def test_page_load_guard_discards_result_after_logout():
    backend = {}
    store = ContextStore(backend)
    store.start_session("tok", _session())
    guard = PageLoadGuard(backend, "report", context=store.current_user_id)

    ticket = guard.begin()
    store.clear_session()

    assert guard.apply(ticket, ["relatório"], []) == []


def test_page_load_guard_newer_load_supersedes_older():
    backend = {}
    guard = PageLoadGuard(backend, "report")
    first = guard.begin()
    second = guard.begin()

    assert guard.apply(first, ["velho"], []) == []
    assert guard.apply(second, ["novo"], []) == ["novo"]
