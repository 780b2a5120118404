"""
Prompt templates for the tender analysis agent.

Every prompt is assembled from three layers:
- a static legal-framework block for the workspace country
- dynamic state (documents, stored analyses, RUC checks, prior turns)
- a declared output contract (markdown sections or a literal JSON schema)

The builders are pure: they only read their inputs and never look at the
clock, so the same inputs always give the same prompt. Every prompt demands
an answer written entirely in Spanish.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Union

from api.composer.countries import legal_framework_for
from api.schemas.analysis import (
    AnalysisContext,
    AnalysisRecord,
    ConversationTurn,
    FocusedDocumentContext,
    RucValidation,
    WorkspaceContext,
    WorkspaceDocument,
)


# Character caps that bound prompt size.
DOCUMENT_PREVIEW_CHARS = 2000
ANALYSIS_TEXT_CHARS = 8000
COMPARISON_PREVIEW_CHARS = 4000
ANALYSIS_PREVIEW_CHARS = 3000
FOCUSED_ANALYSIS_CHARS = 12000
HISTORY_TURN_CHARS = 1000
HISTORY_TURNS = 10


class PromptKind(str, Enum):
    DOCUMENT_ANALYSIS = "document_analysis"
    DOCUMENT_INSIGHT = "document_insight"
    COMPARISON = "comparison"
    WORKSPACE_CHAT = "workspace_chat"
    DOCUMENT_CHAT = "document_chat"


PromptContext = Union[
    AnalysisContext,
    Sequence[AnalysisContext],
    WorkspaceContext,
    FocusedDocumentContext,
]


DOCUMENT_TYPE_LABELS = {
    "pliego": "pliego de condiciones",
    "propuesta": "propuesta técnica y económica",
    "contrato": "contrato",
}

SPANISH_ONLY_INSTRUCTION = (
    "IMPORTANTE: Toda tu respuesta debe estar completamente en español. "
    "No uses inglés en ninguna parte de tu respuesta."
)

ANALYST_PERSONA = """Eres un analista legal y de negocios experto en contratación pública, especializado en la revisión de pliegos, propuestas y contratos de licitaciones gubernamentales en Latinoamérica."""

NOT_SPECIFIED = "No especificado"

TURN_LABELS = {"user": "Usuario", "assistant": "Asistente"}


# ==============================================================================
# FORMATTING HELPERS
# ==============================================================================

def truncate(text: Optional[str], limit: int) -> str:
    """Cap ``text`` at ``limit`` characters, marking the cut with '...'."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def format_date(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else "Fecha desconocida"


def document_type_label(document_type: str) -> str:
    return DOCUMENT_TYPE_LABELS.get(document_type, document_type)


def document_labels(contexts: Sequence[AnalysisContext]) -> List[str]:
    """Display label per document: its file name, or 'Documento N' when blank.

    Repeated names get a ' (2)', ' (3)' suffix so every document keeps its
    own key in the comparison result.
    """
    labels: List[str] = []
    for index, context in enumerate(contexts, start=1):
        base = context.file_name.strip() or f"Documento {index}"
        label = base
        copy = 2
        while label in labels:
            label = f"{base} ({copy})"
            copy += 1
        labels.append(label)
    return labels


def format_ruc_validation(ruc: Optional[RucValidation], indent: str = "") -> str:
    if ruc is None:
        return ""
    lines = [
        f"{indent}Validación RUC:",
        f"{indent}- RUC: {ruc.ruc}",
        f"{indent}- Razón social: {ruc.company_name}",
        f"{indent}- RUC válido: {'Sí' if ruc.is_valid else 'No'}",
        f"{indent}- Habilitado para ejecutar la obra: {'Sí' if ruc.can_perform_work else 'No'}",
        f"{indent}- Tipo de empresa: {ruc.business_type}",
    ]
    return "\n".join(lines)


def format_history(turns: Sequence[ConversationTurn], limit: int = HISTORY_TURNS) -> str:
    if not turns:
        return "Sin mensajes previos."
    return "\n".join(
        f"{TURN_LABELS[turn.role]}: {truncate(turn.content, HISTORY_TURN_CHARS)}"
        for turn in list(turns)[-limit:]
    )


def format_legal_documents(legal_documents: Mapping[str, str]) -> str:
    entries = [(key, value) for key, value in sorted(legal_documents.items()) if value]
    if not entries:
        return "Ninguno cargado."
    return "\n".join(f"- {key}: {value}" for key, value in entries)


def format_workspace_document(index: int, doc: WorkspaceDocument) -> str:
    lines = [
        f"{index}. {doc.name} ({doc.type})",
        f"   Descripción: {doc.description or 'Sin descripción'}",
    ]
    if doc.extracted_text:
        lines.append(f"   Vista previa del contenido: {truncate(doc.extracted_text, DOCUMENT_PREVIEW_CHARS)}")
    lines.append(f"   Cargado: {format_date(doc.uploaded_at)}")
    return "\n".join(lines)


def format_analysis_record(index: int, record: AnalysisRecord, limit: int = ANALYSIS_PREVIEW_CHARS) -> str:
    lines = [
        f"{index}. {record.document_name} ({document_type_label(record.document_type)})",
        f"   ID de análisis: {record.id}",
        f"   Fecha: {format_date(record.created_at)}",
    ]
    ruc_block = format_ruc_validation(record.ruc_validation, indent="   ")
    if ruc_block:
        lines.append(ruc_block)
    lines.append(f"   Análisis:\n{truncate(record.ai_analysis, limit) or 'Análisis no disponible'}")
    return "\n".join(lines)


# ==============================================================================
# OUTPUT CONTRACTS
# ==============================================================================

ANALYSIS_MARKDOWN_SECTIONS = """Responde en formato markdown con exactamente estas secciones:
# Análisis de {type_label}
## Resumen Ejecutivo
## Aspectos Legales
(garantías, multas y penalidades, plazos, riesgos legales)
## Aspectos Técnicos
(requisitos, materiales, procesos, cronograma)
## Aspectos Económicos
(presupuesto, forma de pago, costos, riesgos financieros)
## Brechas e Inconsistencias
## Evaluación de Riesgos
(indica un nivel Alto, Medio o Bajo y justifícalo)
## Recomendaciones
## Conclusión"""

TYPE_FOCUS = {
    "pliego": """- Requisitos habilitantes y criterios de evaluación de ofertas
- Presupuesto referencial, forma de pago y anticipo
- Garantías exigidas y multas por incumplimiento
- Plazos de ejecución y cronograma del procedimiento""",
    "propuesta": """- Cumplimiento de los requisitos del pliego
- Oferta económica frente al presupuesto referencial
- Experiencia, personal técnico y equipo ofertado
- Situación del RUC y habilitación del oferente""",
    "contrato": """- Objeto, monto y plazo del contrato
- Garantías, multas y causales de terminación
- Obligaciones de las partes y mecanismos de control
- Solución de controversias, fuerza mayor y prórrogas""",
}

INSIGHT_JSON_SCHEMA = """Responde ÚNICAMENTE con JSON válido, sin bloques de código ni texto adicional, con esta estructura:
{
  "summary": "Resumen breve del análisis del documento",
  "keyFindings": ["Hallazgo 1", "Hallazgo 2", "Hallazgo 3"],
  "recommendations": ["Recomendación 1", "Recomendación 2", "Recomendación 3"],
  "riskAssessment": {
    "level": "low|medium|high",
    "score": 1-10,
    "factors": ["factor1", "factor2"]
  }
}
Los valores de texto deben estar en español. Las claves JSON y los valores de "level" deben mantenerse exactamente como se muestran."""


def comparison_json_schema(labels: Sequence[str]) -> str:
    """JSON contract for comparisons, spelled out with the real document labels."""
    strengths = ",\n".join(f'      "{label}": ["fortaleza1", "fortaleza2"]' for label in labels)
    weaknesses = ",\n".join(f'      "{label}": ["debilidad1", "debilidad2"]' for label in labels)
    matrix = ",\n".join(
        f'    "{label}": {{ "legal": 1-10, "financial": 1-10, "operational": 1-10 }}' for label in labels
    )
    label_list = ", ".join(labels)
    return f"""Responde ÚNICAMENTE con JSON válido, sin bloques de código ni texto adicional, con esta estructura:
{{
  "summary": "Resumen ejecutivo de la comparación",
  "comparison": {{
    "strengths": {{
{strengths}
    }},
    "weaknesses": {{
{weaknesses}
    }}
  }},
  "recommendation": {{
    "preferred": "Nombre exacto del documento recomendado",
    "reasoning": "Razonamiento detallado",
    "improvements": ["mejora1", "mejora2"]
  }},
  "riskMatrix": {{
{matrix}
  }}
}}
Usa exactamente estos nombres de documento como claves: {label_list}.
En la matriz de riesgos, 1 es riesgo mínimo y 10 es riesgo máximo.
Los valores de texto deben estar en español. Las claves JSON deben mantenerse exactamente como se muestran."""


CHAT_RESPONSE_GUIDELINES = """Pautas de respuesta:
- Responde en markdown, con títulos y viñetas cuando aporten claridad.
- Cita el documento o análisis del que proviene cada dato.
- Si la información no está en el contexto, dilo claramente y sugiere qué documento cargar o qué pregunta hacer.
- No inventes cifras, plazos ni artículos legales.
- Mantén un tono profesional y enfocado en valor práctico para el negocio."""


# ==============================================================================
# SYSTEM PROMPT BUILDERS
# ==============================================================================

def build_document_analysis_prompt(context: AnalysisContext) -> str:
    type_label = document_type_label(context.document_type)
    focus = TYPE_FOCUS.get(context.document_type, "")
    ruc_block = format_ruc_validation(context.ruc_validation)
    ruc_section = f"\n\n**DATOS DE VALIDACIÓN DISPONIBLES**\n{ruc_block}" if ruc_block else ""
    sections = ANALYSIS_MARKDOWN_SECTIONS.format(type_label=type_label.capitalize())

    return f"""{ANALYST_PERSONA}

Tu tarea es analizar un {type_label} de {context.country_name or NOT_SPECIFIED} y producir un análisis exhaustivo.

{legal_framework_for(context.country_name)}

**ENFOQUE DEL ANÁLISIS**
1. Cumplimiento legal y requisitos regulatorios
2. Especificaciones y requisitos técnicos
3. Términos económicos e implicaciones financieras
4. Evaluación de riesgos y problemas potenciales
5. Brechas e inconsistencias
6. Recomendaciones para mejora

Puntos específicos para este tipo de documento:
{focus}

Proporciona detalles concretos sobre garantías, penalidades, plazos, presupuesto, términos de pago y requisitos técnicos.{ruc_section}

**FORMATO DE RESPUESTA**
{sections}

{SPANISH_ONLY_INSTRUCTION}"""


def build_document_insight_prompt(context: AnalysisContext) -> str:
    ruc_block = format_ruc_validation(context.ruc_validation)
    ruc_section = f"\n\n**DATOS DE VALIDACIÓN DISPONIBLES**\n{ruc_block}" if ruc_block else ""
    return f"""{ANALYST_PERSONA}

Tu tarea es revisar el {document_type_label(context.document_type)} proporcionado y generar hallazgos accionables.

{legal_framework_for(context.country_name)}

Enfócate en:
1. Cumplimiento legal y normativo
2. Riesgos financieros y comerciales
3. Requisitos técnicos y factibilidad
4. Consideraciones operativas
5. Ventajas o desventajas competitivas{ruc_section}

**FORMATO DE RESPUESTA**
{INSIGHT_JSON_SCHEMA}

{SPANISH_ONLY_INSTRUCTION}"""


def build_comparison_prompt(contexts: Sequence[AnalysisContext]) -> str:
    labels = document_labels(contexts)
    countries = sorted({c.country_name for c in contexts if c.country_name})
    country_name = countries[0] if len(countries) == 1 else None
    listing = "\n".join(
        f"- {label}: {document_type_label(context.document_type)}"
        for label, context in zip(labels, contexts)
    )
    return f"""{ANALYST_PERSONA}

Tu tarea es comparar varios documentos de licitación y ofrecer conclusiones estratégicas para la toma de decisiones.

{legal_framework_for(country_name)}

Documentos a comparar:
{listing}

Enfócate en:
1. Evaluación comparativa de riesgos
2. Diferencias de cumplimiento legal y normativo
3. Implicaciones financieras y análisis costo-beneficio
4. Comparación de requisitos técnicos
5. Recomendación estratégica de selección

**FORMATO DE RESPUESTA**
{comparison_json_schema(labels)}

{SPANISH_ONLY_INSTRUCTION}"""


def build_workspace_chat_prompt(context: WorkspaceContext) -> str:
    if context.documents:
        documents_block = "\n".join(
            format_workspace_document(index, doc) for index, doc in enumerate(context.documents, start=1)
        )
    else:
        documents_block = "No hay documentos cargados."
    if context.analyses:
        analyses_block = "\n\n".join(
            format_analysis_record(index, record) for index, record in enumerate(context.analyses, start=1)
        )
    else:
        analyses_block = "No hay análisis completados."

    return f"""Eres un asistente de IA especializado en análisis de documentos legales para contratación pública, licitaciones y procesos de compras gubernamentales.

Tienes acceso al espacio de trabajo del usuario, a sus análisis de documentos y a los documentos cargados. Usa este contexto para dar respuestas fundamentadas y accionables.

Tus capacidades incluyen:
1. Análisis e interpretación de documentos
2. Evaluación de riesgos y verificación de cumplimiento
3. Análisis comparativo entre documentos
4. Orientación legal y regulatoria
5. Recomendaciones estratégicas

{legal_framework_for(context.country_name)}

**CONTEXTO DEL ESPACIO DE TRABAJO**
- Espacio de trabajo: {context.workspace_name or 'Desconocido'}
- País: {context.country_name or NOT_SPECIFIED}
- Análisis disponibles: {len(context.analyses)}
- Documentos disponibles: {len(context.documents)}

Documentos legales de referencia:
{format_legal_documents(context.legal_documents)}

**DOCUMENTOS DEL ESPACIO DE TRABAJO**
{documents_block}

**ANÁLISIS COMPLETADOS**
{analyses_block}

Al analizar documentos, enfócate en:
- Cumplimiento legal y riesgos
- Términos financieros e implicaciones
- Requisitos técnicos
- Plazos y obligaciones
- Recomendaciones de mejora

{CHAT_RESPONSE_GUIDELINES}

{SPANISH_ONLY_INSTRUCTION}"""


def build_document_chat_prompt(context: FocusedDocumentContext) -> str:
    analysis = context.analysis
    ruc_block = format_ruc_validation(analysis.ruc_validation)
    return f"""Eres un asistente de IA especializado en análisis de documentos legales de contratación pública. En esta conversación te enfocas en un único documento y su análisis.

{legal_framework_for(context.country_name)}

**CONTEXTO**
- Espacio de trabajo: {context.workspace_name or 'Desconocido'}
- País: {context.country_name or NOT_SPECIFIED}

Documentos legales de referencia:
{format_legal_documents(context.legal_documents)}

**DOCUMENTO EN FOCO**
- Nombre: {analysis.document_name}
- Tipo: {document_type_label(analysis.document_type)}
- ID de análisis: {analysis.id}
- Fecha de análisis: {format_date(analysis.created_at)}
{ruc_block or 'Validación RUC: no disponible'}

**ANÁLISIS DEL DOCUMENTO**
{truncate(analysis.ai_analysis, FOCUSED_ANALYSIS_CHARS) or 'Análisis no disponible'}

**HISTORIAL DE LA CONVERSACIÓN**
{format_history(context.conversation_history)}

Responde solo sobre este documento. Si el usuario pregunta por otros documentos, indícale que use el chat del espacio de trabajo.

{CHAT_RESPONSE_GUIDELINES}

{SPANISH_ONLY_INSTRUCTION}"""


_BUILDERS = {
    PromptKind.DOCUMENT_ANALYSIS: build_document_analysis_prompt,
    PromptKind.DOCUMENT_INSIGHT: build_document_insight_prompt,
    PromptKind.COMPARISON: build_comparison_prompt,
    PromptKind.WORKSPACE_CHAT: build_workspace_chat_prompt,
    PromptKind.DOCUMENT_CHAT: build_document_chat_prompt,
}


def build_system_prompt(kind: PromptKind, context: PromptContext) -> str:
    """Build the system prompt for ``kind`` from an already assembled context."""
    return _BUILDERS[PromptKind(kind)](context)


# ==============================================================================
# USER MESSAGE BUILDERS
# ==============================================================================

def _document_block(context: AnalysisContext, limit: int, label: Optional[str] = None) -> str:
    return f"""--- INICIO DOCUMENTO: {label or context.file_name or 'sin nombre'} ({document_type_label(context.document_type)}) ---
{truncate(context.extracted_text, limit) or 'No se pudo extraer texto del documento. Se recomienda revisión manual.'}
--- FIN DOCUMENTO ---"""


def build_user_message(kind: PromptKind, context: PromptContext, question: Optional[str] = None) -> str:
    """First user turn for the one-shot operations (analysis, insight, comparison)."""
    kind = PromptKind(kind)
    question = (question or "").strip()

    if kind is PromptKind.DOCUMENT_ANALYSIS:
        intro = (
            f"Analiza este {document_type_label(context.document_type)} "
            f"de {context.country_name or NOT_SPECIFIED} y proporciona un análisis exhaustivo."
        )
        if question:
            intro += f" Presta especial atención a: {question}"
        return f"{intro}\n\n{_document_block(context, ANALYSIS_TEXT_CHARS)}"

    if kind is PromptKind.DOCUMENT_INSIGHT:
        intro = (
            f"Analiza este documento con enfoque en: {question}"
            if question
            else "Proporciona hallazgos completos para este documento."
        )
        return f"{intro}\n\n{_document_block(context, ANALYSIS_TEXT_CHARS)}"

    if kind is PromptKind.COMPARISON:
        intro = (
            f"Compara estos documentos con enfoque en: {question}"
            if question
            else "Proporciona una comparación completa de estos documentos."
        )
        blocks = "\n\n".join(
            _document_block(c, COMPARISON_PREVIEW_CHARS, label)
            for label, c in zip(document_labels(context), context)
        )
        return f"{intro}\n\n{blocks}"

    raise ValueError(f"{kind.value} prompts take the user's own messages")
