# report_pdf.py

import hashlib
import logging
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from config import (
    APP_NAME, REPORT_PRIMARY_COLOR, REPORT_SECONDARY_COLOR, REPORT_TEXT_COLOR, REPORT_INFO_BACKGROUND,
)
from metrics_calculator import (
    REPORT_STATUS_FIELDS, calculate_evaluation_stats, classify_evaluation, format_date_br, is_filled, status_label,
)
from slugs import slugify

logger = logging.getLogger(__name__)

LOGO_PATH = Path(__file__).resolve().parent / "images" / "logo.png"
REPORT_TITLE = "RELATÓRIO DE AVALIAÇÃO PDL"
REPORT_FOOTER = f"Sistema {APP_NAME} - Relatório de Avaliação PDL"
NOT_INFORMED = "Não informado"

# Secções de resultado, pela ordem em que aparecem no relatório.
OUTCOME_SECTIONS = (
    ("action_feedback", "Feedback das Ações Realizadas:"),
    ("actions_not_taken", "Ações Não Realizadas:"),
    ("actions_not_taken_reason", "Justificativa das Ações Não Realizadas:"),
    ("completed_impact", "Impacto das Atividades Realizadas:"),
    ("not_completed_impact", "Impacto das Atividades Não Realizadas:"),
    ("learning_notes", "Observações e Aprendizados:"),
)

INFO, GROUP, FIELD, SCORE = "info", "group", "field", "score"


class ReportSection(NamedTuple):
    kind: str
    title: str
    content: Optional[str] = None


def clean_text(text) -> str:
    """Remove caracteres que a fonte padrão do FPDF (latin-1) não suporta."""
    if text is None:
        return ''
    cleaned = []
    for c in str(text):
        if c == '\n' or (c.isprintable() and _latin1(c)):
            cleaned.append(c)
            continue
        # Tenta a forma decomposta (ex.: aspas tipográficas, letras com diacríticos raros)
        cleaned.extend(d for d in unicodedata.normalize('NFKD', c) if d.isprintable() and _latin1(d))
    return ''.join(cleaned)


def _latin1(c: str) -> bool:
    try:
        c.encode('latin-1')
        return True
    except UnicodeEncodeError:
        return False


def build_report_sections(report) -> List[ReportSection]:
    """
    Conteúdo textual do relatório de uma avaliação, pela ordem fixa:
    informações básicas, aprendizados e compromissos, cada resultado
    preenchido, nota de recomendação e feedback geral. Campos opcionais
    vazios são omitidos.
    """
    sections = [
        ReportSection(INFO, "INFORMAÇÕES BÁSICAS", "\n".join([
            f"PDL: {report.program_name or NOT_INFORMED}",
            f"Data do Treinamento: {format_date_br(report.session_date)}",
            f"Tema do Dia: {report.topic or NOT_INFORMED}",
        ])),
        ReportSection(GROUP, "APRENDIZADOS E COMPROMISSOS"),
        ReportSection(FIELD, "Principais Aprendizados:",
                      report.learnings if is_filled(report.learnings) else NOT_INFORMED),
        ReportSection(FIELD, "Compromissos, Objetivos e Metas:",
                      report.commitments if is_filled(report.commitments) else NOT_INFORMED),
    ]

    outcomes = [
        ReportSection(FIELD, label, getattr(report, attr))
        for attr, label in OUTCOME_SECTIONS if is_filled(getattr(report, attr))
    ]
    if outcomes:
        sections.append(ReportSection(GROUP, "AÇÕES E RESULTADOS"))
        sections.extend(outcomes)

    evaluation = []
    # Nota 0 significa "não avaliado"
    if report.recommendation_score:
        evaluation.append(ReportSection(SCORE, "Nota de Recomendação:", f"{report.recommendation_score}/10"))
    if is_filled(report.general_feedback):
        evaluation.append(ReportSection(FIELD, "Feedback Geral:", report.general_feedback))
    if evaluation:
        sections.append(ReportSection(GROUP, "AVALIAÇÃO"))
        sections.extend(evaluation)
    return sections


def report_cache_key(report) -> str:
    """Chave do PDF gerado: muda sempre que o conteúdo da avaliação muda."""
    digest = hashlib.sha1(report.model_dump_json().encode("utf-8")).hexdigest()
    return f"{report.id}:{digest}"


def report_filename(report) -> str:
    name = slugify(report.program_name) or "pdl"
    date_part = format_date_br(report.session_date).replace('/', '-')
    if not date_part[:2].isdigit():
        date_part = "sem-data"
    return f"relatorio-pdl-{name}-{date_part}.pdf"


class ReportPDF(FPDF):
    """Classe FPDF customizada com cabeçalho da marca e rodapé numerado."""

    def __init__(self, *args, subtitle=f"Sistema {APP_NAME}", generated_at=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.report_title = REPORT_TITLE
        self.subtitle = subtitle
        self.generated_at = generated_at or datetime.now()
        self.initial = "P"
        self.set_auto_page_break(auto=True, margin=25)

    def header(self):
        self.set_fill_color(*REPORT_PRIMARY_COLOR)
        self.rect(0, 0, self.w, 40, 'F')
        if LOGO_PATH.is_file():
            self.image(str(LOGO_PATH), 12, 8, 30)
        else:
            # Sem logo: círculo com a inicial do PDL
            self.set_fill_color(255, 255, 255)
            self.ellipse(15, 10, 20, 20, 'F')
            self.set_xy(15, 10)
            self.set_font('helvetica', 'B', 14)
            self.set_text_color(*REPORT_PRIMARY_COLOR)
            self.cell(20, 20, clean_text(self.initial), align='C')

        self.set_text_color(255, 255, 255)
        self.set_xy(50, 10)
        self.set_font('helvetica', 'B', 18)
        self.cell(0, 10, clean_text(self.report_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_x(50)
        self.set_font('helvetica', '', 11)
        self.cell(0, 7, clean_text(self.subtitle), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_x(50)
        self.set_font('helvetica', '', 9)
        self.cell(0, 7, f"Gerado em: {self.generated_at.strftime('%d/%m/%Y')}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_text_color(*REPORT_TEXT_COLOR)
        self.set_y(50)

    def footer(self):
        self.set_y(-15)
        self.set_font('helvetica', 'I', 8)
        self.set_text_color(*REPORT_SECONDARY_COLOR)
        self.cell(0, 10, clean_text(f"{REPORT_FOOTER} - Página {self.page_no()}"), align='C')
        self.set_text_color(*REPORT_TEXT_COLOR)


def _render_section(pdf: ReportPDF, section: ReportSection) -> None:
    width = pdf.w - pdf.l_margin - pdf.r_margin
    if section.kind == INFO:
        lines = section.content.split("\n")
        height = 12 + 7 * len(lines)
        if pdf.will_page_break(height):
            pdf.add_page()
        pdf.set_fill_color(*REPORT_INFO_BACKGROUND)
        pdf.rect(pdf.l_margin, pdf.get_y(), width, height, 'F')
        pdf.set_x(pdf.l_margin + 4)
        pdf.set_font('helvetica', 'B', 12)
        pdf.set_text_color(*REPORT_PRIMARY_COLOR)
        pdf.cell(0, 10, clean_text(section.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font('helvetica', '', 10)
        pdf.set_text_color(*REPORT_TEXT_COLOR)
        for line in lines:
            pdf.set_x(pdf.l_margin + 4)
            pdf.multi_cell(width - 8, 7, clean_text(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(6)
    elif section.kind == GROUP:
        if pdf.will_page_break(30):
            pdf.add_page()
        pdf.set_font('helvetica', 'B', 14)
        pdf.set_text_color(*REPORT_PRIMARY_COLOR)
        pdf.multi_cell(width, 8, clean_text(section.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(2)
    elif section.kind == SCORE:
        pdf.set_font('helvetica', 'B', 12)
        pdf.set_text_color(*REPORT_PRIMARY_COLOR)
        pdf.cell(0, 8, clean_text(section.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font('helvetica', 'B', 16)
        pdf.cell(0, 10, clean_text(section.content), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(4)
    else:
        pdf.set_font('helvetica', 'B', 11)
        pdf.set_text_color(*REPORT_PRIMARY_COLOR)
        pdf.multi_cell(width, 7, clean_text(section.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        if section.content == NOT_INFORMED:
            pdf.set_font('helvetica', 'I', 10)
            pdf.set_text_color(*REPORT_SECONDARY_COLOR)
        else:
            pdf.set_font('helvetica', '', 10)
            pdf.set_text_color(*REPORT_TEXT_COLOR)
        pdf.multi_cell(width, 6, clean_text(section.content), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(5)
    pdf.set_text_color(*REPORT_TEXT_COLOR)


def create_evaluation_report_pdf(report, generated_at: Optional[datetime] = None) -> bytes:
    """Gera o PDF de uma avaliação e devolve os bytes para download."""
    pdf = ReportPDF(generated_at=generated_at)
    pdf.initial = (report.program_name or "P")[:1].upper()
    pdf.set_title(clean_text(f"{REPORT_TITLE} - {report.program_name or ''}"))
    pdf.add_page()
    for section in build_report_sections(report):
        _render_section(pdf, section)
    logger.info("PDF gerado para a avaliação %s (%d páginas)", report.id, pdf.page_no())
    return bytes(pdf.output())


def create_summary_pdf(reports: Sequence, fields: Iterable[str] = REPORT_STATUS_FIELDS,
                       generated_at: Optional[datetime] = None) -> bytes:
    """Relatório consolidado: uma linha por avaliação com o estado e os totais no fim."""
    fields = tuple(fields)
    pdf = ReportPDF(subtitle=f"Sistema {APP_NAME} - Resumo das Avaliações", generated_at=generated_at)
    pdf.add_page()

    stats = calculate_evaluation_stats(reports, fields)
    pdf.set_font('helvetica', 'B', 12)
    pdf.set_text_color(*REPORT_PRIMARY_COLOR)
    pdf.cell(0, 10, "RESUMO", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font('helvetica', '', 10)
    pdf.set_text_color(*REPORT_TEXT_COLOR)
    pdf.cell(0, 7, clean_text(f"Total: {stats.total}   Pendentes: {stats.pending}   Concluídas: {stats.completed}"),
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    page_width = pdf.w - pdf.l_margin - pdf.r_margin
    col_widths = (page_width * 0.3, page_width * 0.17, page_width * 0.35, page_width * 0.18)
    headers = ("PDL", "Data", "Tema", "Estado")

    def table_header():
        pdf.set_font('helvetica', 'B', 9)
        for width, header in zip(col_widths, headers):
            pdf.cell(width, 7, clean_text(header), border=1, align='C')
        pdf.ln()
        pdf.set_font('helvetica', '', 8)

    table_header()
    for report in reports:
        if pdf.will_page_break(7):
            pdf.add_page()
            table_header()
        row = (
            report.program_name or "-",
            format_date_br(report.session_date),
            report.topic or "-",
            status_label(classify_evaluation(report, fields)),
        )
        for width, value in zip(col_widths, row):
            text = clean_text(value)
            # Trunca para caber numa linha da tabela
            while text and pdf.get_string_width(text) > width - 2:
                text = text[:-1]
            pdf.cell(width, 7, text, border=1)
        pdf.ln()
    return bytes(pdf.output())
