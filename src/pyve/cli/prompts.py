"""Operator confirmation policy.

All prompts go through these helpers so every one of them can be answered
without a terminal: PYVE_FORCE_YES (or --yes) answers yes, and
non-interactive runs (PYVE_NON_INTERACTIVE, CI=true, or no TTY) take the
automated answer, which never destroys data.
"""

from typing import Literal

import click

from pyve.cli.constants import REINIT_CANCEL, REINIT_PURGE, REINIT_UPDATE
from pyve.cli.output import user_output
from pyve.core.context import PyveContext

ReinitChoice = Literal["update", "purge", "cancel", "invalid"]


def confirm(
    ctx: PyveContext,
    message: str,
    *,
    default: bool,
    assume_yes: bool,
    automated_answer: bool,
) -> bool:
    """Ask a yes/no question, honoring the automation toggles.

    Args:
        ctx: Context providing terminal state and environment toggles
        message: Question to ask
        default: Answer when the operator just presses enter
        assume_yes: True when --yes was passed
        automated_answer: Answer used when prompting is not possible
    """
    if assume_yes or ctx.force_yes:
        return True
    if ctx.is_non_interactive:
        return automated_answer
    return click.confirm(message, default=default, err=True)


def confirm_conflicts(ctx: PyveContext, paths: list[str], *, assume_yes: bool) -> bool:
    """List every user-modified artifact, then ask whether to proceed.

    Proceeding leaves the listed files untouched and writes the new content
    next to them, so the interactive default is yes. Automated runs abort.
    """
    user_output("The following files were modified locally and will not be overwritten:")
    for path in paths:
        user_output(f"  - {path}")
    user_output("New versions will be written alongside them for manual review.")
    return confirm(
        ctx,
        "Proceed?",
        default=True,
        assume_yes=assume_yes,
        automated_answer=False,
    )


def choose_reinit_action(ctx: PyveContext) -> ReinitChoice:
    """Ask what to do with an already-initialized project.

    Non-interactive runs always cancel.
    """
    if ctx.is_non_interactive:
        return "cancel"

    user_output("What would you like to do?")
    user_output(f"  {REINIT_UPDATE}. Update in-place (preserves environment)")
    user_output(f"  {REINIT_PURGE}. Purge and re-initialize (clean slate)")
    user_output(f"  {REINIT_CANCEL}. Cancel")
    answer = click.prompt("Choose", default=REINIT_CANCEL, show_default=True, err=True)
    choices: dict[str, ReinitChoice] = {
        REINIT_UPDATE: "update",
        REINIT_PURGE: "purge",
        REINIT_CANCEL: "cancel",
    }
    return choices.get(answer.strip(), "invalid")
