"""Prompt templates for the document assistant.

The agent prompt documents the ``[ACTION:<TYPE>:<PAYLOAD>]`` protocol that
:mod:`paramind.ai.actions.parser` understands; the ask prompt omits it.
"""

from __future__ import annotations

from typing import Sequence

from ..documents.models import Paragraph

STRUCTURE_PREVIEW_CHARS = 100

# (directive, description, format, example)
ACTION_REFERENCE: tuple[tuple[str, str, str, str | None], ...] = (
    (
        "FIND_REPLACE",
        "Find and replace text anywhere in the document",
        '[ACTION:FIND_REPLACE:"old text":"new text":options]',
        '[ACTION:FIND_REPLACE:"color":"colour":{"replaceAll":true}]',
    ),
    ("INSERT_AT_START", "Insert content at the beginning of the document", '[ACTION:INSERT_AT_START:"content to insert"]', None),
    ("INSERT_AT_END", "Insert content at the end of the document", '[ACTION:INSERT_AT_END:"content to insert"]', None),
    (
        "INSERT_AFTER_HEADING",
        "Insert content after a specific heading",
        '[ACTION:INSERT_AFTER_HEADING:"heading text":"content to insert"]',
        None,
    ),
    (
        "INSERT_AT_PARAGRAPH",
        'Insert content at a paragraph index; position is "before", "after", or "replace"',
        '[ACTION:INSERT_AT_PARAGRAPH:index:"content":"position"]',
        '[ACTION:INSERT_AT_PARAGRAPH:3:"New paragraph":"after"]',
    ),
    (
        "FORMAT_TEXT",
        "Apply character formatting to every occurrence of a text",
        '[ACTION:FORMAT_TEXT:"text to format":{"bold":true,"italic":false,"fontSize":14}]',
        None,
    ),
    (
        "CREATE_TABLE",
        'Create a table; location is "start", "end", or "cursor"',
        '[ACTION:CREATE_TABLE:rows:columns:"location"]',
        '[ACTION:CREATE_TABLE:3:4:"end"]',
    ),
    (
        "FORMAT_PARAGRAPHS",
        "Apply paragraph formatting to paragraphs matching the criteria",
        "[ACTION:FORMAT_PARAGRAPHS:criteria:formatting]",
        '[ACTION:FORMAT_PARAGRAPHS:{"excludeHeadings":true}:{"indentation":{"firstLine":36},"alignment":"Left"}]',
    ),
    (
        "INDENT_PARAGRAPHS",
        "Add first-line indentation (points) to non-heading paragraphs",
        "[ACTION:INDENT_PARAGRAPHS:indentAmount]",
        "[ACTION:INDENT_PARAGRAPHS:36]",
    ),
    ("ANALYZE_FORMATTING", "Analyze document formatting structure", "[ACTION:ANALYZE_FORMATTING]", None),
)


def build_system_prompt(
    context: str | None = None,
    structure: str | None = None,
    allow_actions: bool = True,
    base_prompt: str | None = None,
) -> str:
    """Render the system prompt for one turn.

    Args:
        context: Assembled document context.
        structure: Paragraph index preview from :func:`build_structure_preview`.
        allow_actions: Include the action protocol reference (agent mode).
        base_prompt: Replaces the default persona when given.
    """
    if base_prompt:
        sections = [base_prompt.strip()]
    elif allow_actions:
        sections = [_agent_persona_section()]
    else:
        sections = [_ask_persona_section()]
    if allow_actions:
        sections.append(_action_protocol_section())
    sections.append(_guidelines_section(allow_actions))
    if context:
        sections.append(f"**Current Document Content:**\n{context}")
    if structure:
        sections.append(f"**Document Structure (Paragraph Index: Content Preview):**\n{structure}")
    return "\n\n".join(sections)


def _agent_persona_section() -> str:
    return """You are ParaMind, an AI assistant embedded in a word processor with direct document editing capabilities. You can:

1. **Analyze and understand** the entire document structure and content
2. **Make direct edits** to any part of the document without manual cursor positioning
3. **Find and replace** text throughout the document
4. **Insert content** at specific locations (beginning, end, after headings, at paragraph indices)
5. **Apply formatting** to specific text and paragraphs
6. **Create tables** and structured content"""


def _ask_persona_section() -> str:
    return """You are ParaMind, an AI assistant embedded in a word processor. You help with document creation, editing, analysis, and improvement. You can:

1. Analyze and summarize document content
2. Suggest improvements for writing style, grammar, and clarity
3. Help with document structure and organization
4. Answer questions about the document content"""


def _action_protocol_section() -> str:
    lines = [
        "**DOCUMENT EDITING ACTIONS:**",
        "When the user asks for changes, embed action commands in your reply. Text fields are JSON strings,",
        "options and formatting are JSON objects, and fields are separated by colons.",
        "",
    ]
    for directive, description, fmt, example in ACTION_REFERENCE:
        lines.append(f"- **{directive}**: {description}")
        lines.append(f"  Format: {fmt}")
        if example:
            lines.append(f"  Example: {example}")
    lines.append("")
    lines.append("Commands run in the order they appear. The system executes them automatically.")
    return "\n".join(lines)


def _guidelines_section(allow_actions: bool) -> str:
    if allow_actions:
        return """Guidelines:
- Explain what you change and why
- Preserve the overall structure and purpose of the document
- Make changes that fit the document's style
- Ask for confirmation only for major structural changes"""
    return """Guidelines:
- Be helpful, accurate, and concise
- Focus on the document context when available
- Do not claim to have edited the document; describe suggested changes instead"""


def build_structure_preview(paragraphs: Sequence[Paragraph], chars: int = STRUCTURE_PREVIEW_CHARS) -> str:
    """One ``[index] preview`` line per paragraph, truncated to ``chars`` characters."""

    lines: list[str] = []
    for paragraph in paragraphs:
        text = paragraph.text
        preview = text[:chars] + ("..." if len(text) > chars else "")
        lines.append(f"[{paragraph.index}] {preview}")
    return "\n".join(lines)


def build_user_message(query: str, selection: str | None = None) -> str:
    if selection and selection.strip():
        return f'Selected text: "{selection}"\n\nUser query: {query}'
    return query


__all__ = [
    "ACTION_REFERENCE",
    "STRUCTURE_PREVIEW_CHARS",
    "build_structure_preview",
    "build_system_prompt",
    "build_user_message",
]
