"""Plain-text rendering of Wald test results.

The layout follows the classic TRIM report so that downstream tooling
can parse it::

    Wald test for significance of covariates
     Covariate         W  df        p
        Habitat 12.345678   2 0.002087

    Wald test for significance of slope parameter
      Wald = 4.00, df=1, p=0.045500

Tables are rendered with :meth:`pandas.DataFrame.to_string`.  Only one
of the slope, changes-in-slope and deviations sections can appear.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._results import WaldResult

EMPTY_MESSAGE = "(No Wald tests available)"


def _single_line(W: float, df: int, p: float) -> str:
    return f"  Wald = {W:.2f}, df={int(df)}, p={p:f}"


def format_wald_result(result: WaldResult) -> str:
    """Render *result* as text.

    Args:
        result: Output of :func:`~trim_wald.wald`.

    Returns:
        The report, without a trailing newline.
    """
    if result.is_empty:
        return EMPTY_MESSAGE

    lines: list[str] = []

    if result.covar is not None:
        lines.append("Wald test for significance of covariates")
        lines.append(result.covar.table.to_string(index=False))
        lines.append("")

    if result.slope is not None:
        s = result.slope
        lines.append("Wald test for significance of slope parameter")
        lines.append(_single_line(s.W, s.df, s.p))
    elif result.dslope is not None:
        lines.append("Wald test for significance of changes in slope")
        lines.append(result.dslope.to_frame().to_string(index=False))
    elif result.deviations is not None:
        d = result.deviations
        lines.append("Wald test for significance of deviations from linear trend")
        lines.append(_single_line(d.W, d.df, d.p))

    return "\n".join(lines).rstrip("\n")


def print_wald_result(result: WaldResult) -> None:
    """Print *result* in the layout of :func:`format_wald_result`."""
    print(format_wald_result(result))
