"""Terminal prompts used by the import command (prompt_toolkit-based).

Kept apart from the import service so they can be tested in isolation with a
pipe input and ``DummyOutput``.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

from . import keys

_YES = {"y", "yes", "はい"}
_NO = {"n", "no", "いいえ", ""}


def _session(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


class _MonthValidator(Validator):
    def validate(self, document) -> None:
        try:
            keys.month_key(document.text)
        except ValueError:
            raise ValidationError(message="Enter the month as YYYY-MM (e.g. 2026-01)") from None


def confirm_target_month(
    default: str,
    *,
    filename: str | None = None,
    session: PromptSession | None = None,
) -> str | None:
    """Ask which accounting month an export belongs to.

    The prompt is pre-filled with ``default`` (``YYYY-MM``). Returns the
    confirmed month as ``YYYY-MM``, or ``None`` when canceled with Ctrl+C.
    """

    kb = KeyBindings()

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    message = f"Target month for {filename} (YYYY-MM): " if filename else "Target month (YYYY-MM): "
    answer = _session(session, kb).prompt(
        message,
        default=default,
        validator=_MonthValidator(),
        validate_while_typing=False,
    )
    if answer is None:
        return None
    return keys.month_input(answer)


class _YesNoValidator(Validator):
    def validate(self, document) -> None:
        if document.text.strip().lower() not in _YES | _NO:
            raise ValidationError(message="Answer y or n")


def confirm_overwrite(month: str, *, session: PromptSession | None = None) -> bool:
    """Ask before replacing the stored data of ``month``; defaults to no."""

    kb = KeyBindings()

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="n")

    answer = _session(session, kb).prompt(
        f"{month} already has data. Overwrite it? [y/N]: ",
        validator=_YesNoValidator(),
        validate_while_typing=False,
    )
    return answer.strip().lower() in _YES


__all__ = ["confirm_overwrite", "confirm_target_month"]
