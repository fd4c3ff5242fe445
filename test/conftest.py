"""Sets up fixtures general to the entire test suite of this package.

This file is read during the collection phase of pytest when running anything
inside this directory.
"""

import os

import h5py
import numpy as np
import pytest

from muskim.cond import ConditionsManager, ConstantConditionsService, RunConditions
from muskim.data import Collision, FwdTrack, InputFrame, MFTTrack, PropagatedState
from muskim.prop import PropagationError, PropagatorBase
from muskim.select import AcceptancePolicy
from muskim.utils.enums import PropagationPointEnum, TrackTypeEnum

# Storage schema of the synthetic input tables
COLLISION_DTYPE = np.dtype(
    [
        ("id", np.int64),
        ("pos_x", np.float64),
        ("pos_y", np.float64),
        ("pos_z", np.float64),
        ("is_selected", np.bool_),
        ("run_number", np.int64),
        ("swt_alias", np.int64),
        ("mc_collision_id", np.int64),
    ]
)

FWD_TRACK_DTYPE = np.dtype(
    [
        ("id", np.int64),
        ("collision_id", np.int64),
        ("track_type", np.int8),
        ("x", np.float64),
        ("y", np.float64),
        ("z", np.float64),
        ("phi", np.float64),
        ("tgl", np.float64),
        ("signed_1pt", np.float64),
        ("n_clusters", np.int32),
        ("chi2", np.float64),
        ("chi2_match_mchmid", np.float64),
        ("chi2_match_mchmft", np.float64),
        ("r_at_absorber_end", np.float64),
        ("match_mft_track_id", np.int64),
        ("match_mch_track_id", np.int64),
        ("mc_particle_id", np.int64),
        ("cov", np.float64, (15,)),
    ]
)

MFT_TRACK_DTYPE = np.dtype(
    [
        ("id", np.int64),
        ("collision_id", np.int64),
        ("x", np.float64),
        ("y", np.float64),
        ("z", np.float64),
        ("phi", np.float64),
        ("tgl", np.float64),
        ("signed_1pt", np.float64),
        ("n_clusters", np.int32),
        ("chi2", np.float64),
    ]
)

# Diagonal track covariance stored as its lower triangle
DIAG_COV = np.array(
    [1e-2, 0.0, 1e-2, 0.0, 0.0, 1e-4, 0.0, 0.0, 0.0, 1e-4, 0.0, 0.0, 0.0, 0.0, 1e-4]
)


class FakePropagator(PropagatorBase):
    """Propagation engine with scripted outputs which records its calls.

    - At the vertex, the track sits on the vertex
    - At the DCA plane, the track sits at `(track.x, track.y)` from the vertex
    - At the absorber end, the track sits at radius `r_abs`

    The track angles, momentum and covariance are left untouched.
    """

    name = "fake"

    def __init__(self, r_abs=50.0, fail_ids=()):
        self.r_abs = r_abs
        self.fail_ids = set(fail_ids)
        self.calls = []

    def propagate(self, track, collision, point, conditions):
        point = PropagationPointEnum(point)
        self.calls.append((track.id, point))
        if conditions is None:
            raise RuntimeError("Cannot propagate a track without run conditions.")
        if track.id in self.fail_ids:
            raise PropagationError(f"Scripted failure of track {track.id}.")

        if point == PropagationPointEnum.TO_VERTEX:
            x, y, z = collision.pos_x, collision.pos_y, collision.pos_z
        elif point == PropagationPointEnum.TO_DCA:
            x, y = collision.pos_x + track.x, collision.pos_y + track.y
            z = collision.pos_z
        else:
            x, y, z = self.r_abs, 0.0, conditions.z_absorber_end

        return PropagatedState(
            point=point,
            x=x,
            y=y,
            z=z,
            phi=track.phi,
            tgl=track.tgl,
            signed_1pt=track.signed_1pt,
            covariance=track.covariance,
        )

    def extrapolate(self, params, covariance, z_start, z_end, bz):
        return params, covariance


def make_standalone(track_id, collision_id=0, pt=2.0, tgl=-10.0, **kwargs):
    """Builds a standalone muon track which passes the default cuts."""
    values = dict(
        id=track_id,
        collision_id=collision_id,
        track_type=TrackTypeEnum.MUON_STANDALONE,
        x=0.01,
        y=0.0,
        z=-500.0,
        phi=0.5,
        tgl=tgl,
        signed_1pt=1.0 / pt,
        n_clusters=12,
        chi2=3.0,
        chi2_match_mchmid=1.0,
        r_at_absorber_end=50.0,
        cov=DIAG_COV.copy(),
    )
    values.update(kwargs)
    return FwdTrack(**values)


def make_global(track_id, mch_id, mft_id, collision_id=0, **kwargs):
    """Builds a global muon track which passes the default cuts."""
    values = dict(
        id=track_id,
        collision_id=collision_id,
        track_type=TrackTypeEnum.GLOBAL_MUON,
        x=0.002,
        y=0.001,
        z=-50.0,
        phi=0.45,
        tgl=-11.0,
        signed_1pt=-0.5,
        n_clusters=10,
        chi2=50.0,
        chi2_match_mchmid=2.0,
        chi2_match_mchmft=10.0,
        r_at_absorber_end=40.0,
        match_mch_track_id=mch_id,
        match_mft_track_id=mft_id,
        cov=DIAG_COV.copy(),
    )
    values.update(kwargs)
    return FwdTrack(**values)


def make_mft(track_id, collision_id=0, **kwargs):
    """Builds an MFT segment."""
    values = dict(
        id=track_id,
        collision_id=collision_id,
        x=0.002,
        y=0.001,
        z=-45.0,
        phi=0.4,
        tgl=-12.0,
        signed_1pt=-0.6,
        n_clusters=5,
        chi2=4.0,
    )
    values.update(kwargs)
    return MFTTrack(**values)


def make_frame(collisions, fwd_tracks, mft_tracks=(), track_assoc=None):
    """Builds an input frame from lists of objects."""
    return InputFrame(
        collisions=list(collisions),
        fwd_tracks={t.id: t for t in fwd_tracks},
        mft_tracks={t.id: t for t in mft_tracks},
        track_assoc=track_assoc,
    )


def to_array(objects, dtype):
    """Stores a list of data objects in a structured array."""
    array = np.zeros(len(objects), dtype=dtype)
    for i, obj in enumerate(objects):
        for name in dtype.names:
            array[i][name] = getattr(obj, name)

    return array


def write_frames(file_path, frames):
    """Writes a list of input frames to an HDF5 file, one `DF_<n>` group
    per frame, with `n` the position of the frame in the list.
    """
    with h5py.File(file_path, "w") as out_file:
        for i, frame in enumerate(frames):
            group = out_file.create_group(f"DF_{i}")
            group.create_dataset(
                "collisions", data=to_array(frame.collisions, COLLISION_DTYPE)
            )
            group.create_dataset(
                "fwd_tracks",
                data=to_array(list(frame.fwd_tracks.values()), FWD_TRACK_DTYPE),
            )
            group.create_dataset(
                "mft_tracks",
                data=to_array(list(frame.mft_tracks.values()), MFT_TRACK_DTYPE),
            )
            group.create_dataset("fwd_track_assoc", data=frame.track_assoc)


@pytest.fixture(name="conditions")
def fixture_conditions():
    """Conditions of a run with a nominal field."""
    return RunConditions(run=1, bz=-5.0)


@pytest.fixture(name="manager")
def fixture_manager():
    """Conditions cache with constant conditions for every run."""
    return ConditionsManager(ConstantConditionsService(bz=-5.0))


@pytest.fixture(name="propagator")
def fixture_propagator():
    """Scripted propagation engine."""
    return FakePropagator()


@pytest.fixture(name="policy")
def fixture_policy():
    """Default acceptance cuts."""
    return AcceptancePolicy()


@pytest.fixture(name="collision")
def fixture_collision():
    """Single collision at the origin."""
    return Collision(id=0, run_number=1)


@pytest.fixture(name="global_frame")
def fixture_global_frame():
    """Frame with one collision, one global muon, its MCH-MID leg and its
    MFT segment.
    """
    mch = make_standalone(2, signed_1pt=-0.4, x=0.05)
    glob = make_global(3, mch_id=2, mft_id=7)
    mft = make_mft(7)
    return make_frame([Collision(id=0, run_number=1)], [mch, glob], [mft])


@pytest.fixture(name="out_dir")
def fixture_out_dir(tmp_path):
    """Temporary directory for the output files."""
    return os.fspath(tmp_path)
