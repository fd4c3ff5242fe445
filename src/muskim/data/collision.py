"""Module with a data class object which represents a reconstructed collision."""

from dataclasses import dataclass

import numpy as np

from .base import DataBase

__all__ = ["Collision"]


@dataclass(eq=False)
class Collision(DataBase):
    """Reconstructed collision (primary vertex) and its event-level flags.

    Attributes
    ----------
    id : int
        Index of the collision in its table
    pos_x : float
        Vertex x position (cm)
    pos_y : float
        Vertex y position (cm)
    pos_z : float
        Vertex z position (cm)
    is_selected : bool
        Whether the collision passes the event selection
    run_number : int
        Run number the collision was recorded in
    swt_alias : int
        Software trigger bitmask (-1 when not available)
    mc_collision_id : int
        Index of the matched simulated collision (-1 if none)
    """

    id: int = -1
    pos_x: float = 0.0
    pos_y: float = 0.0
    pos_z: float = 0.0
    is_selected: bool = True
    run_number: int = -1
    swt_alias: int = -1
    mc_collision_id: int = -1

    # Boolean attributes
    _bool_attrs = ("is_selected",)

    # Index attributes
    _index_attrs = ("id", "mc_collision_id")

    @property
    def vertex(self):
        """Vertex position as a (3) array."""
        return np.array([self.pos_x, self.pos_y, self.pos_z], dtype=np.float64)
