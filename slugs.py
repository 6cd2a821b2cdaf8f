# slugs.py
"""
Slugs de empresa e de PDL usados nos links de detalhe
``/company/{companySlug}/program/{programSlug}``.

A transformação é só de ida: nomes diferentes podem gerar o mesmo slug
("Foo & Bar" e "Foo Bar" dão ``foo-bar``) e não há forma de recuperar o nome
a partir do slug. Um slug recebido num URL é apenas um token de comparação:
para o resolver, volta-se a aplicar ``slugify`` aos nomes de uma lista
acabada de obter da API e comparam-se os resultados. O identificador
numérico continua a ser a única referência fiável a um registo.
"""

import re
import logging
import unicodedata
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from config import (
    COMPANY_ROUTE_SEGMENT, PROGRAM_ROUTE_SEGMENT,
    UNKNOWN_COMPANY_SLUG, PROGRAM_FALLBACK_PREFIX,
)

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(name: Optional[str]) -> str:
    """
    Converte um nome num segmento de URL.

    1. Passa para minúsculas.
    2. Decompõe (NFD) e remove as marcas combinatórias (acentos).
    3. Remove tudo o que não seja ``[a-z0-9\\s-]``.
    4. Troca cada sequência de espaços por um hífen.
    5. Junta hífenes consecutivos.
    6. Remove hífenes e espaços nas pontas.

    Nunca falha: ``None``, texto vazio ou só pontuação dão ``""``.
    """
    if not name:
        return ""
    text = str(name).lower()
    text = ''.join(c for c in unicodedata.normalize('NFD', text) if not unicodedata.combining(c))
    text = _INVALID_CHARS.sub('', text)
    text = _WHITESPACE.sub('-', text)
    text = _HYPHENS.sub('-', text)
    return text.strip('-').strip()


def program_segment(program_name: Optional[str], program_id: Any) -> str:
    """Slug do PDL, ou ``program-{id}`` quando não há nome utilizável."""
    slug = slugify(program_name)
    return slug or f"{PROGRAM_FALLBACK_PREFIX}-{program_id}"


def company_segment(company_name: Optional[str]) -> str:
    """Slug da empresa, ou o literal ``company`` para uma empresa desconhecida."""
    return slugify(company_name) or UNKNOWN_COMPANY_SLUG


@dataclass(frozen=True)
class ProgramRoute:
    company_slug: str
    program_slug: str

    @property
    def path(self) -> str:
        return f"/{COMPANY_ROUTE_SEGMENT}/{self.company_slug}/{PROGRAM_ROUTE_SEGMENT}/{self.program_slug}"

    @property
    def query_params(self) -> dict:
        return {COMPANY_ROUTE_SEGMENT: self.company_slug, PROGRAM_ROUTE_SEGMENT: self.program_slug}


def build_program_route(company_name: Optional[str], program_name: Optional[str], program_id: Any) -> ProgramRoute:
    return ProgramRoute(company_segment(company_name), program_segment(program_name, program_id))


def parse_program_path(path: Optional[str]) -> Optional[ProgramRoute]:
    """Separa os dois segmentos de um caminho de detalhe; não os interpreta."""
    if not path:
        return None
    parts = [p for p in path.strip().split('/') if p]
    if len(parts) != 4 or parts[0] != COMPANY_ROUTE_SEGMENT or parts[2] != PROGRAM_ROUTE_SEGMENT:
        return None
    return ProgramRoute(parts[1], parts[3])


def route_from_query_params(params) -> Optional[ProgramRoute]:
    company_slug = params.get(COMPANY_ROUTE_SEGMENT)
    program_slug = params.get(PROGRAM_ROUTE_SEGMENT)
    if not program_slug:
        return None
    return ProgramRoute(company_slug or UNKNOWN_COMPANY_SLUG, program_slug)


def company_matches(route: ProgramRoute, company_name: Optional[str]) -> bool:
    """A rota pertence à empresa da sessão; o segmento por omissão ``company`` é aceite."""
    return route.company_slug in (company_segment(company_name), UNKNOWN_COMPANY_SLUG)


def match_slug(slug: str, candidates: Iterable[Any], name_getter: Callable[[Any], Optional[str]]) -> List[Any]:
    """Devolve todos os candidatos cujo nome, ao ser convertido, dá ``slug``."""
    if not slug:
        return []
    return [c for c in candidates if slugify(name_getter(c)) == slug]


def resolve_program(route: ProgramRoute, candidates: Sequence[Any], cached_id: Optional[int] = None) -> Optional[Any]:
    """
    Encontra o PDL de uma rota numa lista acabada de obter da API.

    Primeiro pelo id numérico guardado no contexto do cliente, desde que esse
    PDL continue a gerar o slug da rota (um link partilhado pode apontar para
    outro PDL); depois pela comparação de slugs. Devolve ``None`` se nada
    corresponder, e o chamador redireciona para a lista de PDLs.
    """
    matches = match_slug(route.program_slug, candidates, lambda c: c.name)
    # PDLs sem nome utilizável só são alcançáveis pelo segmento "program-{id}"
    matches += [c for c in candidates
                if not slugify(c.name) and program_segment(None, c.id) == route.program_slug]

    if cached_id is not None:
        for candidate in matches:
            if candidate.id == cached_id:
                return candidate
        logger.info("PDL %s do contexto não corresponde ao slug '%s'; a resolver pelo slug",
                    cached_id, route.program_slug)

    if not matches:
        return None
    if len(matches) > 1:
        logger.warning("Slug '%s' corresponde a %d PDLs; a usar o primeiro (id %s)",
                       route.program_slug, len(matches), matches[0].id)
    return matches[0]
