# models.py

from datetime import datetime
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator


class ApiModel(BaseModel):
    """Base dos modelos da API: nomes em português no fio, atributos em inglês no código."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Company(ApiModel):
    id: int
    name: str
    code: Optional[str] = None
    city: Optional[str] = Field(default=None, alias="cidade")
    state: Optional[str] = Field(default=None, alias="estado")
    active: Optional[bool] = Field(default=None, alias="ativo")

    @property
    def is_selectable(self) -> bool:
        return self.active is not False

    @property
    def location(self) -> Optional[str]:
        if self.city and self.state:
            return f"{self.city} - {self.state}"
        return self.city or self.state


class Program(ApiModel):
    """Um PDL (programa de treino) de uma empresa."""
    id: int = Field(validation_alias=AliasChoices("id_pdl", "id"))
    name: str = Field(validation_alias=AliasChoices("pdl_nome", "name"))
    company_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("empresa_id", "company_id"))
    active: Optional[bool] = Field(default=None, validation_alias=AliasChoices("pdl_ativo", "active"))
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("pdl_criado_em", "created_at"))
    finished_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("finalizado_em", "finished_at"))

    @property
    def is_finalized(self) -> bool:
        return bool(self.finished_at)


class EvaluationResults(ApiModel):
    """Campos de resultado enviados no PUT de resultados (substituem os anteriores)."""
    action_feedback: Optional[str] = Field(default="", alias="feedback_acoes_realizadas")
    actions_not_taken: Optional[str] = Field(default="", alias="acoes_nao_realizadas")
    actions_not_taken_reason: Optional[str] = Field(default="", alias="justificativa_nao_realizadas")
    completed_impact: Optional[str] = Field(default="", alias="impacto_atividade_realizada")
    not_completed_impact: Optional[str] = Field(default="", alias="impacto_atividade_nao_realizada")
    learning_notes: Optional[str] = Field(default="", alias="observacoes_aprendizados")

    def to_payload(self) -> dict:
        return {key: (value or "") for key, value in self.model_dump(by_alias=True).items()}


class EvaluationDraft(ApiModel):
    """Nova avaliação (passo 'Aprendizados e Compromissos')."""
    program_id: int = Field(alias="pdl_id")
    session_date: str = Field(default="", alias="data_treinamento")
    topic: str = Field(default="", alias="tema_dia")
    learnings: str = Field(default="", alias="principais_aprendizados")
    commitments: str = Field(default="", alias="compromissos")
    recommendation_score: Optional[int] = Field(default=None, alias="nota_recomendacao")
    general_feedback: Optional[str] = Field(default=None, alias="feedback_geral")

    REQUIRED_FIELDS: ClassVar[Dict[str, str]] = {
        "session_date": "Data do Treinamento",
        "topic": "Tema do Treinamento",
        "learnings": "Principais Aprendizados",
        "commitments": "Compromissos",
    }

    def missing_required(self) -> List[str]:
        """Rótulos dos campos obrigatórios vazios, pela ordem do formulário."""
        return [
            label for attr, label in self.REQUIRED_FIELDS.items()
            if not (getattr(self, attr) or "").strip()
        ]

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True)
        # Nota 0 no formulário significa "não avaliado"
        if not payload.get("nota_recomendacao"):
            payload.pop("nota_recomendacao", None)
        feedback = (payload.get("feedback_geral") or "").strip()
        if feedback:
            payload["feedback_geral"] = feedback
        else:
            payload.pop("feedback_geral", None)
        return payload


class EvaluationRecord(ApiModel):
    """Avaliação completa tal como devolvida pela API."""
    id: int = Field(validation_alias=AliasChoices("id_avaliacao", "id"))
    user_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("usuario_id", "user_id"))
    program_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("pdl_id", "program_id"))
    program_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("pdl", "pdl_nome", "program_name"))
    session_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("data_treinamento", "session_date"))
    topic: Optional[str] = Field(default=None, validation_alias=AliasChoices("tema_dia", "topic"))
    learnings: Optional[str] = Field(default=None, validation_alias=AliasChoices("principais_aprendizados", "learnings"))
    commitments: Optional[str] = Field(default=None, validation_alias=AliasChoices("compromissos", "commitments"))
    action_feedback: Optional[str] = Field(default=None, validation_alias=AliasChoices("feedback_acoes_realizadas", "action_feedback"))
    actions_not_taken: Optional[str] = Field(default=None, validation_alias=AliasChoices("acoes_nao_realizadas", "actions_not_taken"))
    actions_not_taken_reason: Optional[str] = Field(default=None, validation_alias=AliasChoices("justificativa_nao_realizadas", "actions_not_taken_reason"))
    completed_impact: Optional[str] = Field(default=None, validation_alias=AliasChoices("impacto_atividade_realizada", "completed_impact"))
    not_completed_impact: Optional[str] = Field(default=None, validation_alias=AliasChoices("impacto_atividade_nao_realizada", "not_completed_impact"))
    learning_notes: Optional[str] = Field(default=None, validation_alias=AliasChoices("observacoes_aprendizados", "learning_notes"))
    recommendation_score: Optional[int] = Field(default=None, validation_alias=AliasChoices("nota_recomendacao", "recommendation_score"))
    general_feedback: Optional[str] = Field(default=None, validation_alias=AliasChoices("feedback_geral", "general_feedback"))
    active: Optional[bool] = Field(default=None, validation_alias=AliasChoices("ativo", "active"))
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("criado_em", "created_at"))
    updated_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("atualizado_em", "updated_at"))

    @field_validator("recommendation_score", mode="before")
    @classmethod
    def _coerce_score(cls, value):
        if value in (None, ""):
            return None
        return int(float(value))

    def results(self) -> EvaluationResults:
        return EvaluationResults(
            action_feedback=self.action_feedback or "",
            actions_not_taken=self.actions_not_taken or "",
            actions_not_taken_reason=self.actions_not_taken_reason or "",
            completed_impact=self.completed_impact or "",
            not_completed_impact=self.not_completed_impact or "",
            learning_notes=self.learning_notes or "",
        )


class LoginResult(ApiModel):
    token: str
    user_id: int
    email: Optional[str] = None
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    logged_at: datetime = Field(default_factory=datetime.now)
