from types import SimpleNamespace

import pytest

from slugs import (
    ProgramRoute, build_program_route, company_matches, company_segment, match_slug, parse_program_path,
    program_segment, resolve_program, route_from_query_params, slugify,
)


@pytest.mark.parametrize("name, expected", [
    ("São Paulo", "sao-paulo"),
    ("Foo  &  Bar!!", "foo-bar"),
    ("Liderança 2024", "lideranca-2024"),
    ("  --Gestão--de--Equipas--  ", "gestao-de-equipas"),
    ("Ação\tResultado\nFinal", "acao-resultado-final"),
    ("ÁRVORE", "arvore"),
])
def test_slugify_examples(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", [None, "", "   ", "!!!", "&*()", "---"])
def test_slugify_never_fails_on_unusable_names(name):
    assert slugify(name) == ""


@pytest.mark.parametrize("name", ["São Paulo", "Foo  &  Bar!!", "PDL - Módulo 1", "a-b-c"])
def test_slugify_is_idempotent_and_url_safe(name):
    slug = slugify(name)
    assert slugify(slug) == slug
    assert set(slug) <= set("abcdefghijklmnopqrstuvwxyz0123456789-")
    assert not slug.startswith("-") and not slug.endswith("-")
    assert "--" not in slug


def test_slugify_collapses_different_names_to_the_same_slug():
    assert slugify("Foo & Bar") == slugify("Foo Bar") == "foo-bar"


def test_segment_fallbacks():
    assert program_segment("", 42) == "program-42"
    assert program_segment("???", 42) == "program-42"
    assert program_segment("Liderança", 42) == "lideranca"
    assert company_segment(None) == "company"
    assert company_segment("Empresa Ação") == "empresa-acao"


def test_build_program_route_path_and_query_params():
    route = build_program_route("Fábrica de Líderes", "Liderança 2024", 7)
    assert route.path == "/company/fabrica-de-lideres/program/lideranca-2024"
    assert route.query_params == {"company": "fabrica-de-lideres", "program": "lideranca-2024"}


def test_parse_program_path():
    assert parse_program_path("/company/acme/program/lideranca") == ProgramRoute("acme", "lideranca")
    assert parse_program_path("/company/acme/program/lideranca/") == ProgramRoute("acme", "lideranca")
    assert parse_program_path("/pdls") is None
    assert parse_program_path("/company/acme/pdl/x") is None
    assert parse_program_path(None) is None


def test_route_from_query_params():
    assert route_from_query_params({"company": "acme", "program": "x"}) == ProgramRoute("acme", "x")
    assert route_from_query_params({"program": "x"}) == ProgramRoute("company", "x")
    assert route_from_query_params({"company": "acme"}) is None


def _program(id, name):
    return SimpleNamespace(id=id, name=name)


def test_match_slug_returns_every_collision():
    candidates = [_program(1, "Foo & Bar"), _program(2, "Foo Bar"), _program(3, "Outro")]
    assert [c.id for c in match_slug("foo-bar", candidates, lambda c: c.name)] == [1, 2]
    assert match_slug("", candidates, lambda c: c.name) == []


def test_resolve_program_prefers_cached_id_among_matches():
    candidates = [_program(1, "Foo & Bar"), _program(2, "Foo Bar")]
    assert resolve_program(ProgramRoute("acme", "foo-bar"), candidates, cached_id=2).id == 2


def test_resolve_program_ignores_cached_id_for_another_slug():
    candidates = [_program(1, "Liderança"), _program(2, "Gestão")]
    assert resolve_program(ProgramRoute("acme", "gestao"), candidates, cached_id=1).id == 2


def test_resolve_program_first_match_on_ambiguity():
    candidates = [_program(5, "Foo Bar"), _program(6, "Foo & Bar")]
    assert resolve_program(ProgramRoute("acme", "foo-bar"), candidates).id == 5


def test_resolve_program_by_fallback_segment():
    candidates = [_program(9, "!!!"), _program(10, "Liderança")]
    assert resolve_program(ProgramRoute("acme", "program-9"), candidates).id == 9


def test_resolve_program_not_found():
    candidates = [_program(1, "Liderança")]
    assert resolve_program(ProgramRoute("acme", "inexistente"), candidates) is None
    assert resolve_program(ProgramRoute("acme", "inexistente"), [], cached_id=1) is None


def test_company_matches_session_company_or_default_segment():
    assert company_matches(ProgramRoute("fabrica-de-lideres", "x"), "Fábrica de Líderes")
    assert company_matches(route_from_query_params({"program": "x"}), "Fábrica de Líderes")
    assert not company_matches(ProgramRoute("outra-empresa", "x"), "Fábrica de Líderes")
