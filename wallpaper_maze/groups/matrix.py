"""
Exact integer affine transforms for wallpaper group elements.

A group element is a 3x3 matrix acting on homogeneous points (x, y, 1).
Coefficients are Python ints so products, inverses and hash keys stay exact;
floating point only appears when a matrix is applied to a point.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple


Basis = Tuple[Tuple[int, int], Tuple[int, int]]


@dataclass(frozen=True)
class GroupElement:
    """3x3 integer matrix, stored row-major."""
    m: Tuple[int, ...]

    def __post_init__(self):
        if len(self.m) != 9:
            raise ValueError(f"GroupElement needs 9 coefficients, got {len(self.m)}")
        object.__setattr__(self, 'm', tuple(int(v) for v in self.m))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def identity(cls) -> 'GroupElement':
        return cls((1, 0, 0, 0, 1, 0, 0, 0, 1))

    @classmethod
    def translation(cls, dx: int, dy: int) -> 'GroupElement':
        return cls((1, 0, dx, 0, 1, dy, 0, 0, 1))

    @classmethod
    def affine(cls, a: int, b: int, c: int, d: int,
               tx: int = 0, ty: int = 0) -> 'GroupElement':
        """Build [[a, b, tx], [c, d, ty], [0, 0, 1]]."""
        return cls((a, b, tx, c, d, ty, 0, 0, 1))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'GroupElement':
        flat = [v for row in rows for v in row]
        return cls(tuple(flat))

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    @property
    def key(self) -> Tuple[int, ...]:
        """Hashable identity of the element."""
        return self.m

    @property
    def linear(self) -> Tuple[int, int, int, int]:
        m = self.m
        return (m[0], m[1], m[3], m[4])

    @property
    def translation_part(self) -> Tuple[int, int]:
        return (self.m[2], self.m[5])

    def is_identity(self) -> bool:
        return self.m == (1, 0, 0, 0, 1, 0, 0, 0, 1)

    def __matmul__(self, other: 'GroupElement') -> 'GroupElement':
        a, b = self.m, other.m
        out = []
        for i in range(3):
            for j in range(3):
                out.append(a[3 * i] * b[j] + a[3 * i + 1] * b[3 + j] + a[3 * i + 2] * b[6 + j])
        return GroupElement(tuple(out))

    def determinant(self) -> int:
        a, b, c, d, e, f, g, h, i = self.m
        return a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)

    def inverse(self) -> 'GroupElement':
        """
        Exact inverse via the adjugate.

        Only unimodular matrices (determinant +1 or -1) have integer inverses,
        which covers every element of the groups used here.
        """
        det = self.determinant()
        if det not in (1, -1):
            raise ValueError(f"Matrix is not invertible over the integers (det={det})")
        a, b, c, d, e, f, g, h, i = self.m
        adj = (
            e * i - f * h, c * h - b * i, b * f - c * e,
            f * g - d * i, a * i - c * g, c * d - a * f,
            d * h - e * g, b * g - a * h, a * e - b * d,
        )
        return GroupElement(tuple(v * det for v in adj))

    def power(self, k: int) -> 'GroupElement':
        base = self if k >= 0 else self.inverse()
        result = GroupElement.identity()
        for _ in range(abs(k)):
            result = result @ base
        return result

    def reduce_translation(self, basis: Basis) -> 'GroupElement':
        """
        Canonicalise the translation part modulo the lattice spanned by basis.

        Two elements with the same linear part whose translations differ by a
        lattice vector map to the same result. The lattice must be invariant
        under the linear part for this to describe a coset of the group.
        """
        (b1x, b1y), (b2x, b2y) = basis
        det = b1x * b2y - b2x * b1y
        if det == 0:
            raise ValueError("Lattice basis is degenerate")
        tx, ty = self.translation_part
        # adj(B) @ t, then floor(. / det) gives the lattice coordinates
        s1 = b2y * tx - b2x * ty
        s2 = -b1y * tx + b1x * ty
        k1 = s1 // det
        k2 = s2 // det
        rx = tx - (k1 * b1x + k2 * b2x)
        ry = ty - (k1 * b1y + k2 * b2y)
        m = list(self.m)
        m[2], m[5] = rx, ry
        return GroupElement(tuple(m))

    # ------------------------------------------------------------------
    # Acting on points
    # ------------------------------------------------------------------

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        m = self.m
        w = m[6] * x + m[7] * y + m[8]
        px = m[0] * x + m[1] * y + m[2]
        py = m[3] * x + m[4] * y + m[5]
        if w != 1:
            px, py = px / w, py / w
        return (float(px), float(py))

    def apply_array(self, points: np.ndarray) -> np.ndarray:
        """Apply to an (k, 2) array of points."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        hom = np.hstack([pts, np.ones((pts.shape[0], 1))])
        out = hom @ self.as_array().astype(np.float64).T
        return out[:, :2] / out[:, 2:3]

    def as_array(self) -> np.ndarray:
        return np.array(self.m, dtype=np.int64).reshape(3, 3)

    def __repr__(self) -> str:
        m = self.m
        return f"GroupElement([[{m[0]}, {m[1]}, {m[2]}], [{m[3]}, {m[4]}, {m[5]}], [{m[6]}, {m[7]}, {m[8]}]])"


IDENTITY = GroupElement.identity()
