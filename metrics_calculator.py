# metrics_calculator.py

import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence

import dateutil.parser

from config import STATUS_PENDING, STATUS_COMPLETED, STATUS_LABELS, STATUS_COLORS, STATUS_ICONS

logger = logging.getLogger(__name__)

# Campos de resultado considerados no estado da avaliação, por esta ordem.
STATUS_FIELDS = (
    "action_feedback",
    "actions_not_taken",
    "actions_not_taken_reason",
    "completed_impact",
    "not_completed_impact",
)

# Variante usada na página de Relatório: inclui também as observações.
# ATENÇÃO: as restantes páginas usam STATUS_FIELDS, pelo que um registo só com
# duas respostas, uma delas em `learning_notes`, aparece concluído no Relatório
# e pendente em Ações Realizadas. Mantido assim de propósito até o produto
# decidir qual das regras vale.
REPORT_STATUS_FIELDS = STATUS_FIELDS + ("learning_notes",)

COMPLETION_THRESHOLD = 2

# Nomes dos campos na API, para aceitar também dicionários em bruto.
WIRE_NAMES = {
    "action_feedback": "feedback_acoes_realizadas",
    "actions_not_taken": "acoes_nao_realizadas",
    "actions_not_taken_reason": "justificativa_nao_realizadas",
    "completed_impact": "impacto_atividade_realizada",
    "not_completed_impact": "impacto_atividade_nao_realizada",
    "learning_notes": "observacoes_aprendizados",
}


class EvaluationStats(NamedTuple):
    total: int
    pending: int
    completed: int


EMPTY_STATS = EvaluationStats(0, 0, 0)


def is_filled(value: Any) -> bool:
    """Um campo conta como preenchido se não for nulo nem vazio depois de aparado."""
    if value is None:
        return False
    return str(value).strip() != ""


def get_field(record: Any, field: str) -> Any:
    """Lê um campo de um modelo ou de um dicionário (nome em inglês ou nome da API)."""
    if isinstance(record, Mapping):
        if field in record:
            return record[field]
        return record.get(WIRE_NAMES.get(field, field))
    return getattr(record, field, None)


def count_filled(record: Any, fields: Sequence[str] = STATUS_FIELDS) -> int:
    return sum(1 for field in fields if is_filled(get_field(record, field)))


def classify_evaluation(record: Any, fields: Sequence[str] = STATUS_FIELDS) -> str:
    """
    Deriva o estado de uma avaliação a partir dos campos de resultado.

    Conclusão parcial conta: com pelo menos COMPLETION_THRESHOLD campos
    preenchidos a avaliação fica ``completed``, caso contrário ``pending``.
    O conjunto de campos é escolhido por quem chama (STATUS_FIELDS ou
    REPORT_STATUS_FIELDS).
    """
    filled = count_filled(record, fields)
    return STATUS_COMPLETED if filled >= COMPLETION_THRESHOLD else STATUS_PENDING


def calculate_evaluation_stats(records: Iterable[Any], fields: Sequence[str] = STATUS_FIELDS) -> EvaluationStats:
    """Conta total, pendentes e concluídas; pendentes + concluídas == total."""
    total = pending = completed = 0
    for record in records:
        total += 1
        if classify_evaluation(record, fields) == STATUS_COMPLETED:
            completed += 1
        else:
            pending += 1
    logger.debug("Estatísticas calculadas: total=%d pendentes=%d concluídas=%d", total, pending, completed)
    return EvaluationStats(total, pending, completed)


def calculate_program_stats(program: Any, records: Iterable[Any], fields: Sequence[str] = STATUS_FIELDS) -> EvaluationStats:
    """Estatísticas de um PDL. PDLs finalizados mostram sempre zeros."""
    if program is not None and getattr(program, "is_finalized", False):
        return EMPTY_STATS
    return calculate_evaluation_stats(records, fields)


def filter_by_status(records: Iterable[Any], status: Optional[str], fields: Sequence[str] = STATUS_FIELDS) -> List[Any]:
    """Filtra pelo estado derivado; ``None`` devolve todos."""
    records = list(records)
    if status is None:
        return records
    return [r for r in records if classify_evaluation(r, fields) == status]


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS[STATUS_PENDING])


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, STATUS_COLORS[STATUS_PENDING])


def status_badge(status: str) -> str:
    return f"{STATUS_ICONS.get(status, '')} {status_label(status)}".strip()


# --- Funções Auxiliares de Data ---
def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return dateutil.parser.isoparse(str(value)).date()


def format_date_br(value: Any) -> str:
    """Formata no padrão dd/mm/aaaa usado em todo o portal."""
    if value is None or value == "":
        return "Data não informada"
    try:
        return parse_date(value).strftime("%d/%m/%Y")
    except (ValueError, OverflowError):
        logger.warning("Data inválida recebida da API: %r", value)
        return "Data inválida"
