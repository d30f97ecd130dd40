"""UI-facing copy builders for errors and notifications."""

from __future__ import annotations


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_result_count_label(count: int, query: str = "") -> str:
    """Build the header line above a server list."""
    noun = f"server{'s' if count != 1 else ''}"
    if query:
        return f'{count} {noun} matching "{query}"'
    return f"{count} {noun}"


def build_empty_results_message(query: str) -> str:
    """Message shown when a search returned nothing."""
    return f'No servers found for "{query}". Try another keyword.'


def build_retry_hint(message: str) -> str:
    """Error text for a failed request plus how to retry it."""
    return f"{_ensure_sentence(message)} Press r to retry."


__all__ = [
    "build_actionable_error",
    "build_empty_results_message",
    "build_next_step_hint",
    "build_result_count_label",
    "build_retry_hint",
]
