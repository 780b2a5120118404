"""Static public-procurement legal frameworks, keyed by country name.

The blocks are injected verbatim into system prompts. Lookup is forgiving
about case, accents and surrounding whitespace; anything unknown gets the
generic block.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CountryInfo:
    name: str
    code: str
    legal_framework: str


ECUADOR_FRAMEWORK = """**MARCO LEGAL DE CONTRATACIÓN PÚBLICA: ECUADOR**
1. Constitución de la República del Ecuador (2008), artículo 288: las compras públicas deben cumplir criterios de eficiencia, transparencia, calidad y responsabilidad ambiental y social, priorizando productos y servicios nacionales.
2. Ley Orgánica del Sistema Nacional de Contratación Pública (LOSNCP) y su Reglamento General: procedimientos de contratación, pliegos, garantías, plazos y sanciones.
3. Resoluciones del Servicio Nacional de Contratación Pública (SERCOP) y uso obligatorio del portal de compras públicas.
4. Código Orgánico Administrativo (COA) para actos y procedimientos administrativos.
5. Garantías habituales: fiel cumplimiento (5% del monto del contrato), buen uso del anticipo (100% del anticipo) y garantía técnica.
6. Multas por retraso calculadas por cada día de incumplimiento según el contrato y la LOSNCP.
7. El oferente debe contar con RUC activo emitido por el Servicio de Rentas Internas (SRI) y estar habilitado en el Registro Único de Proveedores (RUP)."""

PERU_FRAMEWORK = """**MARCO LEGAL DE CONTRATACIÓN PÚBLICA: PERÚ**
1. Constitución Política del Perú (1993), artículo 76: las obras, adquisiciones y servicios con fondos públicos se contratan obligatoriamente por licitación o concurso público.
2. Ley de Contrataciones del Estado y su Reglamento, junto con la normativa que las sustituya o modifique.
3. Directivas y pronunciamientos del Organismo Supervisor de las Contrataciones del Estado (OSCE) y registro en el SEACE.
4. Inscripción vigente del proveedor en el Registro Nacional de Proveedores (RNP).
5. Garantía de fiel cumplimiento equivalente al 10% del monto del contrato original.
6. Penalidad por mora calculada por cada día de atraso, hasta un máximo del 10% del monto contractual vigente.
7. RUC activo y habido ante la SUNAT."""

COLOMBIA_FRAMEWORK = """**MARCO LEGAL DE CONTRATACIÓN PÚBLICA: COLOMBIA**
1. Constitución Política de Colombia (1991), principios de la función administrativa (artículo 209).
2. Ley 80 de 1993, Estatuto General de Contratación de la Administración Pública.
3. Ley 1150 de 2007 sobre eficiencia y transparencia, y Decreto 1082 de 2015.
4. Lineamientos de Colombia Compra Eficiente y publicación en el SECOP.
5. Registro Único de Proponentes (RUP) en la Cámara de Comercio para la verificación de requisitos habilitantes.
6. Garantías de seriedad de la oferta, cumplimiento y estabilidad de la obra según el tipo de contrato.
7. RUT y NIT vigentes ante la DIAN."""

MEXICO_FRAMEWORK = """**MARCO LEGAL DE CONTRATACIÓN PÚBLICA: MÉXICO**
1. Constitución Política de los Estados Unidos Mexicanos, artículo 134: los recursos públicos se administran con eficiencia, eficacia, economía, transparencia y honradez, mediante licitaciones públicas.
2. Ley de Adquisiciones, Arrendamientos y Servicios del Sector Público y su Reglamento.
3. Ley de Obras Públicas y Servicios Relacionados con las Mismas y su Reglamento.
4. Publicación de procedimientos en el sistema electrónico de compras gubernamentales.
5. Garantías de cumplimiento y de anticipos conforme a la convocatoria.
6. Penas convencionales por atraso limitadas al monto de la garantía de cumplimiento.
7. RFC vigente y opinión de cumplimiento de obligaciones fiscales positiva emitida por el SAT."""

GENERIC_FRAMEWORK = """**MARCO LEGAL DE CONTRATACIÓN PÚBLICA: GENERAL**
No se dispone de un marco legal específico para este país. Aplica los principios generales de la contratación pública:
1. Legalidad, transparencia, igualdad de trato y libre competencia entre oferentes.
2. Verificación de la constitución, la ley de contratación pública y los reglamentos vigentes del país.
3. Revisión de garantías, multas, plazos y causales de terminación previstas en el pliego y el contrato.
4. Verificación del registro tributario y de proveedores del oferente ante la autoridad competente.
Indica expresamente qué puntos deben contrastarse con la normativa local que el usuario cargue en el espacio de trabajo."""


COUNTRIES: Dict[str, CountryInfo] = {
    "ecuador": CountryInfo(name="Ecuador", code="EC", legal_framework=ECUADOR_FRAMEWORK),
    "peru": CountryInfo(name="Peru", code="PE", legal_framework=PERU_FRAMEWORK),
    "colombia": CountryInfo(name="Colombia", code="CO", legal_framework=COLOMBIA_FRAMEWORK),
    "mexico": CountryInfo(name="Mexico", code="MX", legal_framework=MEXICO_FRAMEWORK),
}


def _normalize(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name.strip().casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def get_country(name: Optional[str]) -> Optional[CountryInfo]:
    if not name:
        return None
    return COUNTRIES.get(_normalize(name))


def legal_framework_for(name: Optional[str]) -> str:
    country = get_country(name)
    return country.legal_framework if country else GENERIC_FRAMEWORK
