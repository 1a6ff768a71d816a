"""Static catalogue of PT2030 application sections.

# ─── PURPOSE ───────────────────────────────────────────────────────────
#
# Every new project is seeded with these sections, in this order.  The
# ``code`` doubles as the section ``key`` stored per project, and
# ``char_limit`` is the official form limit the generated text must fit.
#
# The catalogue is pure data: built once at import time, looked up via
# the index below.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PT2030Section(BaseModel):
    """One section of the PT2030 application form."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Short identifier, e.g. '4.i' or '20.B1'.")
    title: str = Field(description="Visible section heading.")
    description: str = Field(description="Subtitle explaining what the section covers.")
    char_limit: int = Field(gt=0, description="Maximum number of characters allowed.")


PT2030_SECTIONS: tuple[PT2030Section, ...] = (
    # ── 4 – Análise de Mercado ──────────────────────────────────────────
    PT2030Section(
        code="4.i",
        title="Descrição da atividade desenvolvida e evolução nos 5 anos anteriores",
        description="Caracterização da operação anterior à candidatura",
        char_limit=1500,
    ),
    PT2030Section(
        code="4.ii",
        title="Mercados mais relevantes – Situação atual",
        description="Principais mercados clientes do beneficiário",
        char_limit=1500,
    ),
    PT2030Section(
        code="4.iii",
        title="Novos mercados com a realização do projeto",
        description="Mercados que se pretende captar após o investimento",
        char_limit=1500,
    ),
    PT2030Section(
        code="4.iv",
        title="Estratégia de captação de mercados (marketing-mix)",
        description="Plano de marketing e previsão de vendas",
        char_limit=1500,
    ),
    # ── 6 – Vendas ao exterior indiretas ────────────────────────────────
    PT2030Section(
        code="6.fundamentacao",
        title="Fundamentação das vendas ao exterior indiretas",
        description="Justificação e caracterização dos clientes exportadores",
        char_limit=1500,
    ),
    # ── 7 – Substituição das importações ───────────────────────────────
    PT2030Section(
        code="7.fundamentacao",
        title="Fundamentação da substituição das importações",
        description="Explicação de como o projeto reduz importações",
        char_limit=1500,
    ),
    # ── 9 – Designação do projeto ──────────────────────────────────────
    PT2030Section(
        code="9.designacao",
        title="Designação do projeto",
        description="Nome, sumário e objectivos gerais",
        char_limit=9000,
    ),
    # ── 12 – Atividades de inovação ────────────────────────────────────
    PT2030Section(
        code="12.i",
        title="Justificação do grau de inovação / novidade",
        description="Correlação com as atividades de inovação propostas",
        char_limit=4500,
    ),
    # ── 13 – Custos ─────────────────────────────────────────────────────
    PT2030Section(
        code="13.i",
        title="Descrição dos procedimentos aquisitivos",
        description="Evidência da selecção de fornecedores em condições de mercado",
        char_limit=1500,
    ),
    # ── 19 – Enquadramento Temático ────────────────────────────────────
    PT2030Section(
        code="19.fundamentacao",
        title="Fundamentação do Enquadramento Temático (EREI)",
        description="Justificação da linha de acção e domínio diferenciador",
        char_limit=9000,
    ),
    # ── 20 – Critérios de Selecção ─────────────────────────────────────
    PT2030Section(
        code="20.B1",
        title="Critério B.1 – Coerência e adequação da operação",
        description="Relação entre diagnóstico, objectivos e plano de investimentos",
        char_limit=1000,
    ),
    PT2030Section(
        code="20.C1",
        title="Critério C.1 – Capacidade de gestão e implementação",
        description="Competências da equipa, experiência e meios disponíveis",
        char_limit=1000,
    ),
    PT2030Section(
        code="20.D12",
        title="Critério D.1.2 – Contributo para o emprego qualificado",
        description="Impacto em criação e retenção de emprego de valor acrescentado",
        char_limit=1000,
    ),
    PT2030Section(
        code="20.D13",
        title="Critério D.1.3 – Propensão para mercados internacionais",
        description="Grau de internacionalização previsto para o projeto",
        char_limit=1000,
    ),
    PT2030Section(
        code="20.D2",
        title="Critério D.2 – Convergência regional",
        description="Contributo do investimento para reduzir assimetrias territoriais",
        char_limit=1000,
    ),
)

_BY_CODE: dict[str, PT2030Section] = {s.code: s for s in PT2030_SECTIONS}
_ORDER: dict[str, int] = {s.code: i for i, s in enumerate(PT2030_SECTIONS)}


def get_section(code: str) -> PT2030Section | None:
    """Return the catalogue entry for *code*, or ``None`` if unknown."""
    return _BY_CODE.get(code)


def section_order(code: str) -> int:
    """Catalogue position of *code*; unknown codes sort after all known ones."""
    return _ORDER.get(code, len(_ORDER))
