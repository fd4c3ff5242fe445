"""Module with all the data structures used in the skimming chain.

It contains:
- :class:`FwdTrack`, :class:`MFTTrack` for input reconstructed tracks
- :class:`Collision` for reconstructed collisions
- :class:`InputFrame` for the tables of one processing pass
- :class:`PropagatedState` for track states at a reference surface
- :class:`GlobalMuon`, :class:`StandaloneMuon`, :class:`MuonCov` for
  selected muons and their covariance
- :class:`MuonTable` for the append-only output table
"""

from .collision import Collision
from .frame import InputFrame
from .muon import GlobalMuon, MuonCov, PrimaryMuon, StandaloneMuon
from .state import PropagatedState
from .table import MUON_DTYPE, MuonTable
from .track import FwdTrack, MFTTrack
