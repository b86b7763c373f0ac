"""
Centralized prompt management for LLM-based features.
Prompts are stored as markdown files for easy editing.
"""
import os
from typing import Dict, Iterable, List, Optional, Tuple

# Get prompts directory
PROMPTS_DIR = os.path.dirname(__file__)

# Role words the interviewer may be labelled with in a transcript
ROLE_VARIANTS = ["Interviewer", "Researcher"]


def _read_prompt(filename: str) -> str:
    """Read a prompt from a markdown file."""
    path = os.path.join(PROMPTS_DIR, filename)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def format_transcripts(transcripts: Iterable[Dict[str, str]]) -> str:
    """Render transcripts as labelled blocks, in the order given."""
    return "\n\n".join(
        f"=== {t.get('filename') or 'Untitled'} ===\n{t.get('content') or 'No content available'}"
        for t in transcripts
    )


def name_variants(excluded_aliases: List[str]) -> List[str]:
    """
    Expand the configured aliases into every label the interviewer may appear under:
    each alias, first name, last name, "Dr. <last name>", and role words.
    """
    variants: List[str] = []
    for alias in excluded_aliases:
        parts = alias.split()
        candidates = [alias]
        if len(parts) > 1:
            candidates += [parts[0], parts[-1], f"Dr. {parts[-1]}"]
        for candidate in candidates:
            if candidate not in variants:
                variants.append(candidate)
    return variants + [role for role in ROLE_VARIANTS if role not in variants]


def EXCLUSION_DIRECTIVE(excluded_aliases: List[str]) -> str:
    if not excluded_aliases:
        return ""
    canonical_name = excluded_aliases[0]
    variants = "\n".join(f'- "{v}"' for v in name_variants(excluded_aliases))
    return _read_prompt('exclusion.md').format(canonical_name=canonical_name, variants=variants)


def CONTEXT_SECTION(project_context: Optional[str]) -> str:
    if not project_context or not project_context.strip():
        return ""
    return _read_prompt('context.md').format(project_context=project_context.strip())


def ANALYSIS_PROMPT(
    transcripts: List[Dict[str, str]],
    project_context: Optional[str],
    excluded_aliases: List[str]
) -> Tuple[str, str]:
    """
    Build the theme/disagreement analysis prompt.

    Args:
        transcripts: Transcript dicts with filename and content
        project_context: Free-text project context (may be empty)
        excluded_aliases: Names of the speaker to exclude; first is canonical

    Returns:
        (system_instruction, user_instruction)
    """
    system_instruction = _read_prompt('analysis_system.md').format(
        exclusion_directive=EXCLUSION_DIRECTIVE(excluded_aliases),
        context_section=CONTEXT_SECTION(project_context)
    )
    user_instruction = _read_prompt('analysis_user.md').format(
        transcripts=format_transcripts(transcripts)
    )
    return system_instruction, user_instruction


def CHAT_PROMPT(
    transcripts: List[Dict[str, str]],
    project_context: Optional[str],
    question: str,
    excluded_aliases: List[str]
) -> Tuple[str, str]:
    """Build the single-question Q&A prompt. Returns (system_instruction, user_instruction)."""
    system_instruction = _read_prompt('chat_system.md').format(
        exclusion_directive=EXCLUSION_DIRECTIVE(excluded_aliases),
        context_section=CONTEXT_SECTION(project_context)
    )
    user_instruction = _read_prompt('chat_user.md').format(
        question=question,
        transcripts=format_transcripts(transcripts),
        canonical_name=excluded_aliases[0] if excluded_aliases else "the interviewer"
    )
    return system_instruction, user_instruction


def CLEANUP_PROMPT(
    text: str,
    participant: Optional[str] = None,
    context: Optional[str] = None
) -> Tuple[str, str]:
    """Build the quote cleanup prompt. Returns (system_instruction, user_instruction)."""
    speaker = f" from {participant}" if participant else ""
    context_str = f" (Context: {context})" if context else ""
    user_instruction = f'Please clean up this quote{speaker}{context_str}:\n\n"{text}"'
    return _read_prompt('cleanup_system.md'), user_instruction


__all__ = [
    "ANALYSIS_PROMPT",
    "CHAT_PROMPT",
    "CLEANUP_PROMPT",
    "EXCLUSION_DIRECTIVE",
    "CONTEXT_SECTION",
    "format_transcripts",
    "name_variants",
]
