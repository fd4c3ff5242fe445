"""Module which contains enumerated variables shared across the project."""

from enum import IntEnum

__all__ = ["TrackTypeEnum", "PropagationPointEnum"]


class TrackTypeEnum(IntEnum):
    """Enumerates the forward track categories produced upstream."""

    GLOBAL_MUON = 0
    GLOBAL_MUON_OTHER_MATCH = 1
    GLOBAL_FORWARD = 2
    MUON_STANDALONE = 3
    MCH_STANDALONE = 4


class PropagationPointEnum(IntEnum):
    """Enumerates the reference surfaces a track can be propagated to."""

    TO_VERTEX = 0
    TO_DCA = 1
    TO_ABSORBER_END = 2
