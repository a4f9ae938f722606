"""Linear contrasts for the change-in-slope and covariate tests.

First-difference transformation
-------------------------------
In model 2 with changepoints, β holds one slope per segment.  The
Wald test is applied to the *change* in slope at each changepoint:

    β'_1 = β_1,    β'_i = β_i − β_{i−1}

which is the linear map β' = A β with the banded matrix

    A = [[ 1,  0,  0, …],
         [−1,  1,  0, …],
         [ 0, −1,  1, …],
         …]

By the delta method the covariance of β' is V' = A V Aᵀ.

Covariate blocks
----------------
With covariates, β is a concatenation of ``nblock`` blocks of length
``nbeta0``: the baseline slopes followed by one block per non-baseline
covariate level, ``nblock = Σ(nclass − 1) + 1``.  A is applied to each
block independently, and to every block pair of the covariance.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def difference_matrix(n: int) -> np.ndarray:
    """Return the ``n × n`` first-difference matrix A.

    ``A[i, i] = 1`` and ``A[i, i-1] = -1``; all other entries are zero.
    Applied to a constant vector ``[c, c, …]`` it yields ``[c, 0, …]``.
    """
    return np.eye(n) - np.eye(n, k=-1)


def block_count(nclass: Sequence[int] | np.ndarray) -> int:
    """Number of coefficient blocks: one baseline plus one per extra level."""
    return int(np.sum(np.asarray(nclass, dtype=int) - 1)) + 1


def block_slices(nbeta0: int, nblock: int) -> list[slice]:
    """Contiguous index ranges ``[i·nbeta0, (i+1)·nbeta0)`` of each block."""
    return [slice(i * nbeta0, (i + 1) * nbeta0) for i in range(nblock)]


def regroup_indices(b: int, nbeta0: int, nblock: int) -> np.ndarray:
    """Positions of baseline parameter *b* across all blocks.

    Returns ``[b, b + nbeta0, b + 2·nbeta0, …]`` (``nblock`` entries).
    """
    return b + nbeta0 * np.arange(nblock)


def transform_blocks(
    beta: np.ndarray,
    var_beta: np.ndarray,
    A: np.ndarray,
    nblock: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Apply *A* block-wise to a coefficient vector and its covariance.

    Args:
        beta: Coefficients, shape ``(nblock * k,)``.
        var_beta: Covariance, shape ``(nblock * k, nblock * k)``.
        A: Transformation matrix, shape ``(k, k)``.
        nblock: Number of blocks.

    Returns:
        ``(dbeta, var_dbeta)`` where ``dbeta[block_i] = A @ beta[block_i]``
        and ``var_dbeta[block_i, block_j] = A @ V[block_i, block_j] @ A.T``.
    """
    k = A.shape[0]
    slices = block_slices(k, nblock)

    dbeta = np.zeros_like(beta, dtype=float)
    for rows in slices:
        dbeta[rows] = A @ beta[rows]

    var_dbeta = np.zeros_like(var_beta, dtype=float)
    for rows in slices:
        for cols in slices:
            var_dbeta[rows, cols] = A @ var_beta[rows, cols] @ A.T

    return dbeta, var_dbeta


def covariate_slices(nclass: Sequence[int] | np.ndarray, nbeta0: int) -> list[slice]:
    """Index range of each covariate's block within β.

    Covariate *k* contributes ``size_k = (nclass_k − 1) · nbeta0``
    coefficients, placed after the baseline block and the blocks of
    all earlier covariates.

    Returns:
        One ``slice`` per covariate, in declaration order.  The slice
        length equals the degrees of freedom of that covariate's test.
    """
    size = (np.asarray(nclass, dtype=int) - 1) * nbeta0
    stop = np.cumsum(size) + nbeta0
    start = stop - size
    return [slice(int(a), int(b)) for a, b in zip(start, stop)]
