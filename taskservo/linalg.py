"""
Linear Algebra Helpers
======================
Rank-revealing pseudo-inverse and velocity twist construction.
"""

import numpy as np
from dataclasses import dataclass

from .exceptions import NumericError


@dataclass
class PseudoInverseResult:
    """Pseudo-inverse of A together with its rank and image bases."""
    pinv: np.ndarray            # (n, m)
    rank: int
    singular_values: np.ndarray
    im_A: np.ndarray            # (m, rank) orthonormal basis of the column space
    im_At: np.ndarray           # (n, rank) orthonormal basis of the row space


def pseudo_inverse(A: np.ndarray, threshold: float = 1e-6) -> PseudoInverseResult:
    """
    Compute the Moore-Penrose pseudo-inverse of A via SVD.

    Singular values below ``threshold * max(singular_values)`` are treated as
    zero, which fixes the numeric rank.

    Args:
        A: Matrix (m, n)
        threshold: Relative singular value cutoff

    Returns:
        PseudoInverseResult with pinv (n, m), rank, and image bases
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2:
        raise NumericError(f"pseudo_inverse expects a matrix, got shape {A.shape}")

    try:
        U, sv, Vt = np.linalg.svd(A, full_matrices=False)
    except np.linalg.LinAlgError as e:
        raise NumericError(f"SVD did not converge: {e}") from e

    if sv.size == 0 or sv[0] == 0.0:
        rank = 0
    else:
        rank = int(np.sum(sv > threshold * sv[0]))

    # Invert only the retained singular values
    sv_inv = np.zeros_like(sv)
    sv_inv[:rank] = 1.0 / sv[:rank]
    pinv = (Vt.T * sv_inv) @ U.T

    return PseudoInverseResult(
        pinv=pinv,
        rank=rank,
        singular_values=sv,
        im_A=U[:, :rank].copy(),
        im_At=Vt[:rank, :].T.copy(),
    )


def skew(t: np.ndarray) -> np.ndarray:
    """Create skew-symmetric matrix from 3-vector."""
    tx, ty, tz = np.asarray(t, dtype=float)
    return np.array([
        [0.0, -tz, ty],
        [tz, 0.0, -tx],
        [-ty, tx, 0.0],
    ])


def velocity_twist_matrix(rotation: np.ndarray = None,
                          translation: np.ndarray = None) -> np.ndarray:
    """
    Build the 6x6 velocity twist matrix aVb from the pose of b in a.

    aVb = [[aRb, [atb]x aRb],
           [0,   aRb      ]]

    Args:
        rotation: Rotation matrix aRb (3, 3), identity if None
        translation: Translation atb (3,), zero if None

    Returns:
        Twist matrix (6, 6) mapping a velocity screw expressed in b to a
    """
    R = np.eye(3) if rotation is None else np.asarray(rotation, dtype=float)
    t = np.zeros(3) if translation is None else np.asarray(translation, dtype=float)
    if R.shape != (3, 3) or t.shape != (3,):
        raise NumericError(
            f"velocity_twist_matrix expects R (3, 3) and t (3,), got {R.shape} and {t.shape}"
        )

    V = np.zeros((6, 6))
    V[:3, :3] = R
    V[:3, 3:] = skew(t) @ R
    V[3:, 3:] = R
    return V
